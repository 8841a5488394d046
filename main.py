from dotenv import load_dotenv
import os

# --- Load Environment Variables ---
load_dotenv()

from wsgi import app  # noqa: E402


# ========================== Run ==========================
if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", 3000)))
