"""
Test configuration

Points VPSight at a throwaway SQLite database and known admin credentials
before any vpsight module (and its settings singleton) is imported.
"""

import os
import tempfile

import yaml

_test_dir = tempfile.mkdtemp(prefix="vpsight-tests-")
_config_path = os.path.join(_test_dir, "config.yaml")

with open(_config_path, "w") as f:
    yaml.safe_dump({
        "database": {"type": "sqlite", "sqlite_path": os.path.join(_test_dir, "vpsight.sqlite")},
        "server": {"public_url": "https://vps.example.com"},
        "admin": {"username": "admin", "password": "s3cret"},
        "logging": {"level": "WARNING"},
    }, f)

os.environ["VPSIGHT_CONFIG"] = _config_path
