from .env import load_env

__all__ = ["load_env"]
