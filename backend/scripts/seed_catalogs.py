"""Seed the reference catalogues from a JSON file.

Usage:
    python scripts/seed_catalogs.py catalogs.json

The file maps a catalogue key to a list of names, e.g.
    {"language": ["English", "Spanish"], "career": ["Computer Engineering"]}

Names that already exist are skipped, so the script can be re-run.
"""

import argparse
import json
import logging

from sqlmodel import Session

from ualumni import services
from ualumni.database import create_db_and_tables, engine
from ualumni.errors import AlreadyExistsError

logger = logging.getLogger("ualumni.seed")

CATALOGS = {
    "language": services.LanguageService,
    "career": services.CareerService,
    "contract-type": services.ContractTypeService,
    "industry-of-interest": services.IndustryOfInterestService,
    "technical-skill": services.TechnicalSkillService,
}


def seed(session: Session, data: dict) -> dict:
    unknown = sorted(set(data) - set(CATALOGS))
    if unknown:
        raise ValueError(f"Unknown catalogues: {', '.join(unknown)}")
    summary = {}
    for key, names in data.items():
        svc = CATALOGS[key](session)
        created = skipped = 0
        for name in names:
            name = str(name).strip()
            if not name:
                continue
            try:
                svc.create(name)
                created += 1
            except AlreadyExistsError:
                skipped += 1
        summary[key] = {"created": created, "skipped": skipped}
        logger.info("seeded %s created=%d skipped=%d", key, created, skipped)
    return summary


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed UAlumni catalogues")
    parser.add_argument("file", help="JSON file mapping catalogue to names")
    args = parser.parse_args(argv)

    with open(args.file, encoding="utf-8") as fh:
        data = json.load(fh)

    create_db_and_tables()
    with Session(engine) as session:
        summary = seed(session, data)
    print(json.dumps(summary, indent=2))
    return summary


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
