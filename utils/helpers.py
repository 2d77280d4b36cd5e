import os
import yaml

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


def get_config_path():
    return os.getenv("CRICROOM_CONFIG_PATH") or os.path.join(PROJECT_ROOT, "config", "config.yaml")


def load_config():
    config_path = get_config_path()
    if not os.path.exists(config_path):
        return {}
    with open(config_path, "r") as f:
        return yaml.safe_load(f) or {}
