import logging
import os
from typing import Optional
from fastapi import APIRouter, Depends, File, Path, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from devcamper.config import Settings, get_settings
from devcamper.core.errors import ErrorResponse
from devcamper.core.geocoder import Geocoder, get_geocoder
from devcamper.core.query import build_pagination, parse_list_query
from devcamper.core.uploads import photo_filename, save_upload, upload_size
from devcamper.db.bootcamps import BootcampRepository, get_repository
from devcamper.models.base import envelope
from devcamper.models.bootcamp import FIELD_KINDS, QUERYABLE_FIELDS, BootcampCreate, BootcampUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/bootcamps", tags=["Bootcamps"])

# Divisor turning a linear distance into an angular radius (radians)
EARTH_RADIUS_KM = 6378
NESTED_FIELDS = {"location"}


def _dump(bootcamp) -> dict:
    return bootcamp.model_dump(mode="json", exclude_unset=True)


def _not_found(bootcamp_id: str) -> ErrorResponse:
    return ErrorResponse(f"Bootcamp not found with id of {bootcamp_id}", status.HTTP_404_NOT_FOUND)


@router.get("/")
async def get_bootcamps(request: Request, repo: BootcampRepository = Depends(get_repository)):
    query = parse_list_query(
        request.query_params.multi_items(), QUERYABLE_FIELDS, NESTED_FIELDS, kinds=FIELD_KINDS
    )

    # Counts the whole collection, not only documents matching the filters
    total = repo.count()
    bootcamps = repo.find(query)
    pagination = build_pagination(query.page, query.limit, total)

    return envelope(
        [_dump(b) for b in bootcamps],
        msg="Show all bootcamps.",
        count=len(bootcamps),
        pagination=pagination.model_dump(exclude_none=True),
    )


@router.get("/radius/{zipcode}/{distance}")
async def get_bootcamps_in_radius(
    zipcode: str,
    distance: float = Path(..., ge=0),
    repo: BootcampRepository = Depends(get_repository),
    geocoder: Geocoder = Depends(get_geocoder),
):
    location = await geocoder.geocode(zipcode)
    if not location:
        raise ErrorResponse(f"No location found for zipcode {zipcode}", status.HTTP_404_NOT_FOUND)
    lat = location[0].latitude
    lng = location[0].longitude

    radius = distance / EARTH_RADIUS_KM
    bootcamps = repo.find_within(lng, lat, radius)
    return envelope([_dump(b) for b in bootcamps], count=len(bootcamps))


@router.get("/{bootcamp_id}")
async def get_bootcamp(bootcamp_id: str, repo: BootcampRepository = Depends(get_repository)):
    bootcamp = repo.get(bootcamp_id)
    if bootcamp is None:
        raise _not_found(bootcamp_id)
    return envelope(_dump(bootcamp), msg=f"Get a bootcamp. ID: {bootcamp_id}")


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_bootcamp(
    bootcamp: BootcampCreate,
    repo: BootcampRepository = Depends(get_repository),
    geocoder: Geocoder = Depends(get_geocoder),
):
    results = await geocoder.geocode(bootcamp.address)
    if not results:
        logger.warning("No geocoding result for address %r, saving without location", bootcamp.address)
    location = results[0].to_location() if results else None

    created = repo.create(bootcamp, location)
    return envelope(_dump(created), msg="Created new bootcamp.")


@router.put("/{bootcamp_id}")
async def update_bootcamp(
    bootcamp_id: str,
    bootcamp: BootcampUpdate,
    repo: BootcampRepository = Depends(get_repository),
):
    changes = bootcamp.model_dump(mode="json", exclude_unset=True)
    updated = repo.update(bootcamp_id, changes)
    if updated is None:
        raise _not_found(bootcamp_id)
    return envelope(_dump(updated), msg=f"Updated bootcamp. ID: {bootcamp_id}")


@router.delete("/{bootcamp_id}")
async def delete_bootcamp(bootcamp_id: str, repo: BootcampRepository = Depends(get_repository)):
    if not repo.delete(bootcamp_id):
        raise _not_found(bootcamp_id)
    return envelope({}, msg=f"Deleted a bootcamp. ID: {bootcamp_id}")


@router.put("/{bootcamp_id}/photo")
async def bootcamp_upload_photo(
    bootcamp_id: str,
    file: Optional[UploadFile] = File(None),
    repo: BootcampRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
):
    bootcamp = repo.get(bootcamp_id)
    if bootcamp is None:
        raise _not_found(bootcamp_id)

    if file is None:
        raise ErrorResponse("Please upload a file.", status.HTTP_400_BAD_REQUEST)

    if not (file.content_type or "").startswith("image"):
        raise ErrorResponse("Please upload an image file.", status.HTTP_400_BAD_REQUEST)

    size = file.size if file.size is not None else upload_size(file.file)
    if size > settings.file_max_upload_limit:
        raise ErrorResponse(
            f"Please upload an image less than {settings.file_max_upload_limit / 1000000:g}mb.",
            status.HTTP_400_BAD_REQUEST,
        )

    filename = photo_filename(bootcamp.id, file.filename)
    destination = os.path.join(settings.file_upload_path, filename)
    try:
        await run_in_threadpool(save_upload, file.file, destination)
    except OSError as e:
        logger.error("Saving upload %s failed: %s", destination, e)
        raise ErrorResponse("Problem with file upload. Try again later.", status.HTTP_500_INTERNAL_SERVER_ERROR)

    repo.set_photo(bootcamp_id, filename)
    logger.info("Stored photo %s for bootcamp %s", filename, bootcamp_id)
    return envelope(filename, msg="Uploaded photo succesfully.")
