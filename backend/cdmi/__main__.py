"""Run the API with uvicorn: ``python -m cdmi``."""
import uvicorn

from cdmi.config import settings

if __name__ == "__main__":
    uvicorn.run("cdmi.main:app", host="0.0.0.0", port=settings.API_PORT)
