import os

BASE_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-me")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Generated invoice PDFs are written under this root (invoices/...)
    DOCUMENTS_ROOT = os.environ.get("DOCUMENTS_ROOT", os.path.join(BASE_DIR, "documents"))

    DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "INR")

    # Page size used by list endpoints when the caller does not pass ?limit=
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 500
