"""Local development entry point.

Usage:
    python run.py

Serves the JSON API on port 5001. Every request must carry the principal
header (X-Principal-Id by default); create users with `flask seed-demo`.
"""

from dotenv import load_dotenv

load_dotenv()  # Load .env before anything else

from organizer import create_app  # noqa: E402

app = create_app()

if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=5001)
