"""
Proving service entry point for ``flask run`` (FLASK_APP=app).

Reads the same environment as the CLI: NETWORK_PRIVATE_KEY becomes the
bearer token clients must present, FIBPROOF_LOG the log level.
"""

from dotenv import load_dotenv

from fibproof.config import Settings
from fibproof.log import setup_logger
from fibproof.provers import CpuProver
from fibproof.service import create_app

load_dotenv()
settings = Settings.from_env()
setup_logger(settings.log_level)

app = create_app(prover=CpuProver(), api_key=settings.network_private_key)

if __name__ == "__main__":
    app.run()
