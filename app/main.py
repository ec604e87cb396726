import logging
import os

from fastapi import FastAPI
from dotenv import load_dotenv

load_dotenv()

from app.routes import auth_router, demo_data_router

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

# Create FastAPI app
app = FastAPI(
    title="EngageNatural Demo Data",
    description="Seeds and removes the tagged demo dataset for the brand dashboard",
    version="1.0.0"
)

# Include routers
app.include_router(auth_router)
app.include_router(demo_data_router)


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
