import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from pydantic import ValidationError

from config import Settings, get_settings
from database import LESSONS, ORDERS, Database, get_database
from errors import (
    ApiError,
    AssetNotFound,
    NotFound,
    ValidationFailure,
    api_error_handler,
    request_validation_handler,
    unhandled_error_handler,
)
from logging_config import RequestLoggingMiddleware, setup_logging
from schemas import (
    UPDATABLE_LESSON_FIELDS,
    ErrorResponse,
    LessonUpdate,
    LessonUpdated,
    Order,
    OrderCreated,
    OrderRequest,
)

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"
ORDER_FIELDS = ("name", "phone", "lessonIDs", "spaces")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings)
    db = Database.from_settings(settings)
    app.state.database = db
    try:
        db.connect()
    except Exception:
        # No retry: the server must not come up without its store.
        logger.critical("Could not connect to MongoDB at startup; shutting down", exc_info=True)
        db.close()
        raise
    try:
        yield
    finally:
        db.close()


app = FastAPI(title="After School Classes API", version=API_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().allowed_origins),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

app.add_exception_handler(ApiError, api_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# Utility to convert Mongo _id to string

def serialize_doc(doc: dict):
    if not doc:
        return doc
    doc = dict(doc)
    _id = doc.get("_id")
    if isinstance(_id, ObjectId):
        doc["id"] = str(_id)
        del doc["_id"]
    return doc


def validate_order(req: OrderRequest) -> Order:
    """Build the order record. Empty values count as missing."""
    missing = [field for field in ORDER_FIELDS if not getattr(req, field)]
    if missing:
        raise ValidationFailure(
            f"name, phone, lessonIDs and spaces are required (missing: {', '.join(missing)})",
            error="Missing required fields",
        )
    return Order(
        name=req.name,
        phone=req.phone,
        lessonIDs=req.lessonIDs,
        spaces=req.spaces,
        createdAt=utc_now(),
    )


def _is_negative(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value < 0


def build_lesson_update(lesson_id: str, payload: Any) -> Tuple[ObjectId, Dict[str, Any]]:
    """
    Check a lesson update and reduce it to the ``$set`` document.

    Checks run in order: id syntax, non-empty payload, non-negative spaces,
    non-negative price. Fields outside UPDATABLE_LESSON_FIELDS are dropped.
    """
    if not ObjectId.is_valid(lesson_id):
        raise ValidationFailure(
            f"'{lesson_id}' is not a valid lesson identifier",
            error="Invalid lesson ID",
        )
    if payload is None or payload == {}:
        raise ValidationFailure("Request body must contain at least one field", error="No update data provided")
    if not isinstance(payload, dict):
        raise ValidationFailure("Request body must be a JSON object", error="Invalid update data")

    projected = {key: value for key, value in payload.items() if key in UPDATABLE_LESSON_FIELDS}
    if _is_negative(projected.get("spaces")):
        raise ValidationFailure("spaces must be zero or greater", error="Invalid spaces value")
    if _is_negative(projected.get("price")):
        raise ValidationFailure("price must be zero or greater", error="Invalid price value")

    try:
        update = LessonUpdate.model_validate(projected)
    except ValidationError as exc:
        fields = ", ".join(str(err["loc"][0]) for err in exc.errors() if err.get("loc"))
        raise ValidationFailure(f"Invalid value for: {fields}", error="Invalid update data") from exc

    fields = update.model_dump(exclude_unset=True)
    nulls = sorted(key for key, value in fields.items() if value is None)
    if nulls:
        raise ValidationFailure(f"Fields cannot be null: {', '.join(nulls)}", error="Invalid update data")
    return ObjectId(lesson_id), fields


def count_changed_fields(before: Dict[str, Any], after: Dict[str, Any], fields: Dict[str, Any]) -> int:
    return sum(1 for key in fields if before.get(key) != after.get(key))


def resolve_image(images_dir: Path, image_path: str) -> Optional[Path]:
    """Return the file for ``image_path`` inside ``images_dir``, or None."""
    root = images_dir.resolve()
    try:
        target = (root / image_path).resolve()
        target.relative_to(root)
    except ValueError:
        # Null bytes in the path or a path escaping the images directory.
        return None
    if not target.is_file():
        return None
    return target


@app.get("/")
def read_root():
    return {
        "message": "After School Classes API",
        "version": API_VERSION,
        "endpoints": {
            "GET /lessons": "List all lessons",
            "PUT /lessons/{id}": "Update lesson fields (subject, location, price, spaces, image); modifiedCount is the number of fields changed",
            "POST /orders": "Create an order",
            "GET /images/{path}": "Lesson images",
            "GET /health": "Service health",
            "GET /db-status": "Database connection status",
        },
    }


@app.get("/health")
def health(request: Request):
    db: Optional[Database] = getattr(request.app.state, "database", None)
    return {
        "status": "ok",
        "database": bool(db is not None and db.connected),
        "timestamp": utc_now().isoformat(),
    }


@app.get("/db-status")
def db_status(request: Request, settings: Settings = Depends(get_settings)):
    db: Optional[Database] = getattr(request.app.state, "database", None)
    return {
        "connected": bool(db is not None and db.connected),
        "database": db.name if db is not None else settings.database_name,
    }


# Lessons endpoints
@app.get("/lessons", response_model=List[dict], responses=ERROR_RESPONSES)
def list_lessons(db: Database = Depends(get_database)):
    docs = db.get_documents(LESSONS)
    logger.debug("Fetched %d lessons", len(docs))
    return [serialize_doc(d) for d in docs]


@app.put("/lessons/{lesson_id}", response_model=LessonUpdated, responses=ERROR_RESPONSES)
def update_lesson(lesson_id: str, payload: Any = Body(None), db: Database = Depends(get_database)):
    oid, fields = build_lesson_update(lesson_id, payload)

    before = db.get_document(LESSONS, oid)
    if before is None:
        raise NotFound(f"No lesson with id {lesson_id}", error="Lesson not found")
    if fields and not db.update_document(LESSONS, oid, fields).matched_count:
        raise NotFound(f"No lesson with id {lesson_id}", error="Lesson not found")

    lesson = db.get_document(LESSONS, oid)
    if lesson is None:
        raise NotFound(f"No lesson with id {lesson_id}", error="Lesson not found")
    modified = count_changed_fields(before, lesson, fields)
    logger.info("Updated lesson %s fields=%s modified=%d", lesson_id, sorted(fields), modified)
    return {
        "message": "Lesson updated successfully",
        "modifiedCount": modified,
        "lesson": serialize_doc(lesson),
    }


# Orders endpoints
@app.post("/orders", status_code=201, response_model=OrderCreated, responses=ERROR_RESPONSES)
def create_order(req: OrderRequest, db: Database = Depends(get_database)):
    order = validate_order(req)
    order_id = db.create_document(ORDERS, order)
    logger.info("Created order %s for %d lesson(s)", order_id, len(order.lessonIDs))
    return {"message": "Order created successfully", "orderId": order_id, "order": order}


# Static lesson images
@app.get("/images/{image_path:path}", responses={404: {"model": ErrorResponse}})
def get_image(image_path: str, settings: Settings = Depends(get_settings)):
    target = resolve_image(settings.images_dir, image_path)
    if target is None:
        raise AssetNotFound(f"The requested image '{image_path}' does not exist")
    return FileResponse(target)


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
