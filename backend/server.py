from fastapi import FastAPI, APIRouter
from dotenv import load_dotenv
from starlette.middleware.cors import CORSMiddleware
import os
import logging
from pathlib import Path

# Load env before other imports
ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

from voicebank import __version__
from voicebank_api import voicebank_router

# Create the main app
app = FastAPI(title="Voicebank Installer API", version=__version__)

# Create a router with the /api prefix
api_router = APIRouter(prefix="/api")

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ============== Health Check ==============

@api_router.get("/")
async def root():
    return {"message": "Voicebank Installer API", "version": __version__}

@api_router.get("/health")
async def health_check():
    return {"status": "healthy"}

# Include the routers
app.include_router(api_router)
app.include_router(voicebank_router)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=os.environ.get('CORS_ORIGINS', '*').split(','),
    allow_methods=["*"],
    allow_headers=["*"],
)
