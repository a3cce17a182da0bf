import logging
from typing import Dict, List, Optional
from fastapi import Depends
from google.cloud.firestore_v1 import SERVER_TIMESTAMP
from devcamper.config import get_db
from devcamper.core.geopoint import Location
from devcamper.core.query import ListQuery
from devcamper.db.utils import EARTH_RADIUS_M, angular_distance, convert_doc_to_model, geohash_range
from devcamper.models.bootcamp import LIST_FIELDS, BootcampCreate, BootcampInDB, BootcampSelection, slugify
from devcamper.models.course import CourseInDB

logger = logging.getLogger(__name__)

BOOTCAMPS = "bootcamps"
COURSES = "courses"
# Firestore caps "in" filters at 30 values and write batches at 500 operations
IN_QUERY_CHUNK = 30
BATCH_LIMIT = 500


class BootcampRepository:
    """Data access for the ``bootcamps`` collection and its related courses."""

    def __init__(self, db):
        self.db = db

    @property
    def collection(self):
        return self.db.collection(BOOTCAMPS)

    def count(self) -> int:
        result = self.collection.count().get()  # synchronous
        return int(result[0][0].value)

    def find(self, query: ListQuery, populate: bool = True) -> List[BootcampInDB]:
        q = self.collection
        for clause in query.filters:
            q = q.where(clause.field, clause.firestore_operator(clause.field in LIST_FIELDS), clause.value)
        if query.select:
            q = q.select(query.select)
        for sort in query.sort:
            q = q.order_by(sort.field, direction="DESCENDING" if sort.descending else "ASCENDING")
        q = q.offset(query.skip).limit(query.limit)

        Model = BootcampSelection if query.select else BootcampInDB
        bootcamps = [convert_doc_to_model(doc.id, doc.to_dict(), Model) for doc in q.stream()]
        if populate:
            self.populate_courses(bootcamps)
        return bootcamps

    def populate_courses(self, bootcamps) -> None:
        ids = [b.id for b in bootcamps]
        by_bootcamp: Dict[str, List[CourseInDB]] = {i: [] for i in ids}
        for start in range(0, len(ids), IN_QUERY_CHUNK):
            chunk = ids[start:start + IN_QUERY_CHUNK]
            for doc in self.db.collection(COURSES).where("bootcamp", "in", chunk).stream():
                course = convert_doc_to_model(doc.id, doc.to_dict(), CourseInDB)
                by_bootcamp.setdefault(course.bootcamp, []).append(course)
        for bootcamp in bootcamps:
            bootcamp.courses = by_bootcamp.get(bootcamp.id, [])

    def get(self, bootcamp_id: str) -> Optional[BootcampInDB]:
        doc = self.collection.document(bootcamp_id).get()  # synchronous
        if not doc.exists:
            return None
        return convert_doc_to_model(doc.id, doc.to_dict(), BootcampInDB)

    def create(self, bootcamp: BootcampCreate, location: Optional[Location] = None) -> BootcampInDB:
        data = bootcamp.model_dump(mode="json")
        data["slug"] = slugify(bootcamp.name)
        data["photo"] = "no-photo.jpg"
        if location is not None:
            data["location"] = location.to_firestore()
            data["geohash"] = location.coordinates.geohash()
        data["created_at"] = SERVER_TIMESTAMP

        doc_ref = self.collection.document()
        doc_ref.set(data)  # synchronous
        created_doc = doc_ref.get()  # synchronous
        logger.info("Created bootcamp %s (%s)", created_doc.id, bootcamp.name)
        return convert_doc_to_model(created_doc.id, created_doc.to_dict(), BootcampInDB)

    def update(self, bootcamp_id: str, changes: dict) -> Optional[BootcampInDB]:
        doc_ref = self.collection.document(bootcamp_id)
        if not doc_ref.get().exists:
            return None
        if changes:
            doc_ref.update(changes)  # synchronous
            logger.info("Updated bootcamp %s: %s", bootcamp_id, ", ".join(sorted(changes)))
        updated_doc = doc_ref.get()
        return convert_doc_to_model(updated_doc.id, updated_doc.to_dict(), BootcampInDB)

    def set_photo(self, bootcamp_id: str, filename: str) -> None:
        self.collection.document(bootcamp_id).update({"photo": filename})

    def delete(self, bootcamp_id: str) -> bool:
        """Delete a bootcamp together with its courses. Returns False if it does not exist."""
        doc_ref = self.collection.document(bootcamp_id)
        if not doc_ref.get().exists:
            return False

        batch = self.db.batch()
        pending = 0
        removed_courses = 0
        for course in self.db.collection(COURSES).where("bootcamp", "==", bootcamp_id).stream():
            batch.delete(course.reference)
            pending += 1
            removed_courses += 1
            if pending == BATCH_LIMIT - 1:
                batch.commit()
                batch = self.db.batch()
                pending = 0
        batch.delete(doc_ref)
        batch.commit()
        logger.info("Deleted bootcamp %s and %d course(s)", bootcamp_id, removed_courses)
        return True

    def find_within(self, lng: float, lat: float, radius: float) -> List[BootcampInDB]:
        """Bootcamps inside the spherical cap centred on (lng, lat) with angular ``radius`` in radians."""
        low, high = geohash_range(lat, lng, radius * EARTH_RADIUS_M)
        query = self.collection \
                    .where("geohash", ">=", low) \
                    .where("geohash", "<=", high)

        bootcamps = []
        for doc in query.stream():
            bootcamp = convert_doc_to_model(doc.id, doc.to_dict(), BootcampInDB)
            if bootcamp.location is None:
                continue
            point = bootcamp.location.coordinates
            if angular_distance(lat, lng, point.latitude, point.longitude) <= radius:
                bootcamps.append(bootcamp)
        return bootcamps


def get_repository(db=Depends(get_db)) -> BootcampRepository:
    return BootcampRepository(db)
