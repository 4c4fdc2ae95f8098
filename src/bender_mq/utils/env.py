import os

from dotenv import load_dotenv

ENV_LOADED = False


def load_env():
    """
    Load the env file named by ENV_FILE (default `.env`) into os.environ.

    Variables already present in the environment win: in Docker/K8s they are
    injected by the platform and the file is only a local convenience.
    """
    global ENV_LOADED
    if ENV_LOADED:
        return

    env_file = os.environ.get("ENV_FILE", ".env")

    if os.path.exists(env_file):
        load_dotenv(env_file, encoding="utf-8", override=False)

    ENV_LOADED = True
