import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from database import engine
from models import Base
from routers import monthly_targets as targets_router
from routers import reports as reports_router

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

Base.metadata.create_all(bind=engine)

app = FastAPI(title="Field Sales DSR Service")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(reports_router.router, prefix="/api")
app.include_router(targets_router.router, prefix="/api")


# --- API Endpoints ---
@app.get("/")
def read_root():
    return {"status": "Field Sales DSR service is running!"}
