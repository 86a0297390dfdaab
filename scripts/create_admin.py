"""
Homesite – Set the admin panel credentials.

Usage:
  python scripts/create_admin.py --email owner@example.com --password yourpass
  python scripts/create_admin.py --email owner@example.com --password yourpass --config-dir /srv/site/config
"""

import argparse
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.config import get_settings
from app.middleware.auth import hash_password
from app.services.config_store import JsonFileConfigStore
from app.services.setting_groups import AUTH


def set_admin_credentials(store: JsonFileConfigStore, email: str, password: str) -> dict:
    """Write the credentials document with a bcrypt hash of the password."""
    if not email or not password:
        raise ValueError("email and password are required")
    document = {"email": email, "password_hash": hash_password(password)}
    store.write(AUTH.key, document)
    return document


def main(argv=None):
    parser = argparse.ArgumentParser(description="Homesite admin credentials")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--config-dir", default=None, help="Defaults to CONFIG_DIR")
    args = parser.parse_args(argv)

    store = JsonFileConfigStore(args.config_dir or get_settings().CONFIG_DIR)
    try:
        set_admin_credentials(store, args.email, args.password)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)
    print(f"Admin credentials saved for {args.email} in {store.path_for(AUTH.key)}")


if __name__ == "__main__":
    main()
