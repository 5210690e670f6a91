import os

from billdesk import create_app

app = create_app()

if __name__ == "__main__":
    host = os.environ.get("BILLDESK_HOST", "127.0.0.1")
    try:
        port = int(os.environ.get("BILLDESK_PORT", "5001"))
    except ValueError:
        port = 5001
    app.run(host=host, port=port, debug=True)
