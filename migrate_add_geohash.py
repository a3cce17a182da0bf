import logging
from devcamper.config import get_db, setup_logging
from devcamper.core.geopoint import GeoPointModel
from devcamper.db.bootcamps import BOOTCAMPS

logger = logging.getLogger("devcamper.migrate_add_geohash")


def migrate_bootcamp_geohashes(db):
    """Backfill the ``geohash`` field radius search relies on."""
    bootcamps_ref = db.collection(BOOTCAMPS)

    updated_count = 0
    skipped_count = 0
    error_count = 0

    for doc in bootcamps_ref.stream():
        try:
            data = doc.to_dict()

            # Skip if geohash already exists
            if data.get("geohash"):
                skipped_count += 1
                continue

            coordinates = (data.get("location") or {}).get("coordinates")
            if coordinates is None:
                skipped_count += 1
                continue

            geohash_value = GeoPointModel.model_validate(coordinates).geohash()
            bootcamps_ref.document(doc.id).update({"geohash": geohash_value})

            updated_count += 1
            logger.info("Updated %s with geohash %s", doc.id, geohash_value)

        except Exception as e:
            error_count += 1
            logger.error("Error updating %s: %s", doc.id, e)

    logger.info("Migration complete: updated=%d skipped=%d errors=%d", updated_count, skipped_count, error_count)
    return updated_count, skipped_count, error_count


if __name__ == "__main__":
    setup_logging()
    migrate_bootcamp_geohashes(get_db())
