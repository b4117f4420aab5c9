"""Create a campaign with its prizes from a JSON file.

The JSON document follows CampaignCreateSchema, for example:

  {"name": "Coffee week", "prizes": [
      {"name": "Free coffee", "probability": 0.2, "total_quantity": 50},
      {"name": "Cookie", "probability": 0.3}
  ]}

With --replace the campaign is left as is and only its prize catalog is
swapped for the file's "prizes"; award counts start again from zero.

Usage:
  python scripts/create_campaign.py campaign.json [--inactive]
  python scripts/create_campaign.py prizes.json --replace CAMPAIGN_ID
"""

from __future__ import annotations

import argparse
import json
import logging
import pathlib
import sys

from dotenv import load_dotenv
from marshmallow import EXCLUDE, ValidationError
from sqlalchemy.orm import sessionmaker

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from spinwin.config import resolve_database_url  # noqa: E402
from spinwin.db import create_app_engine  # noqa: E402
from spinwin.errors import NotFoundError  # noqa: E402
from spinwin.schemas.campaign import CampaignCreateSchema  # noqa: E402
from spinwin.services.campaign_service import CampaignService  # noqa: E402

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("path", type=pathlib.Path)
    parser.add_argument("--inactive", action="store_true", help="Create the campaign switched off")
    parser.add_argument("--replace", type=int, metavar="CAMPAIGN_ID", help="Replace the prizes of an existing campaign")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    load_dotenv()

    if args.replace is not None:
        schema = CampaignCreateSchema(only=("prizes",), unknown=EXCLUDE)
    else:
        schema = CampaignCreateSchema()

    try:
        data = schema.load(json.loads(args.path.read_text(encoding="utf-8")))
    except ValidationError as exc:
        logger.error("Invalid campaign definition: %s", exc.messages)
        return 2

    engine = create_app_engine(resolve_database_url())
    session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    service = CampaignService()

    try:
        if args.replace is not None:
            with session_factory.begin() as session:
                prizes = service.replace_prizes(session, args.replace, data["prizes"])
            logger.info("Prizes replaced campaign_id=%s count=%s", args.replace, len(prizes))
            return 0

        with session_factory.begin() as session:
            campaign = service.create_campaign(session, data)
            if args.inactive:
                service.set_active(session, campaign.id, False)
    except NotFoundError as exc:
        logger.error("%s", exc.message)
        return 1
    finally:
        engine.dispose()

    logger.info("Campaign created id=%s slug=%s", campaign.id, campaign.slug)
    print(campaign.slug)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
