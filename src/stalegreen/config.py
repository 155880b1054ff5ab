import os
import dotenv
import logging

dotenv.load_dotenv()

GITHUB_PRIVATE_KEY = os.environ.get("GITHUB_PRIVATE_KEY")
GITHUB_APP_ID = int(os.environ.get("GITHUB_APP_ID", 0))
GITHUB_INSTALLATION_ID = int(os.environ.get("GITHUB_INSTALLATION_ID", 0))

# login the policy posts comments as, and recognizes its own comments by
BOT_NAME = os.environ.get("BOT_NAME", "k8s-merge-robot")

OVERRIDE_LOGGING = logging.getLevelName(os.environ.get("OVERRIDE_LOGGING", "WARNING"))

REPOSITORIES = [
    r.strip() for r in os.environ.get("REPOSITORIES", "").split(",") if r.strip()
]

TELEGRAM_TOKEN = os.environ.get("TELEGRAM_TOKEN")
TELEGRAM_CHAT_ID = os.environ.get("TELEGRAM_CHAT_ID")

OVERRIDE_CONFIG = os.environ.get("OVERRIDE_CONFIG")

WORKER_SLEEP = float(os.environ.get("WORKER_SLEEP", 60))

ACCESS_TOKEN_TTL = float(os.environ.get("ACCESS_TOKEN_TTL", 300))

PENDING_TIMEOUT = float(os.environ.get("PENDING_TIMEOUT", 30 * 60))

PENDING_POLL_INTERVAL = float(os.environ.get("PENDING_POLL_INTERVAL", 30))

DRY_RUN = os.environ.get("DRY_RUN", "false") == "true"

PUSH_GATEWAY = os.environ.get("PUSH_GATEWAY")
