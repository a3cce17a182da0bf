# devcamper/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from .config import get_settings, setup_logging
from .core.errors import register_error_handlers
from .routers import bootcamps

settings = get_settings()
setup_logging(settings.log_level)

app = FastAPI(
    title="DevCamper API",
    description="Bootcamp directory backend",
    version="1.0.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Routers
app.include_router(bootcamps.router)

# Uploaded photos
app.mount("/uploads", StaticFiles(directory=settings.file_upload_path, check_dir=False), name="uploads")


@app.get("/")
async def root():
    return {"message": "Welcome to DevCamper API, find the bootcamp that fits you"}
