"""Send a test e-mail through the configured provider and print the outcome."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app import create_app  # noqa: E402
from mail.dispatcher import EmailDispatcher  # noqa: E402
from mail.settings import current_settings  # noqa: E402
from models import db  # noqa: E402


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("email", help="Recipient address")
    parser.add_argument("--name", default=None, help="Recipient display name")
    parser.add_argument(
        "--type",
        choices=("verification", "reset"),
        default="verification",
        help="Template to send",
    )
    args = parser.parse_args(argv)

    app = create_app()
    with app.app_context():
        dispatcher = EmailDispatcher(current_settings(), db.session)
        result = dispatcher.send_test_email(args.email, args.name, kind=args.type)
        print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
