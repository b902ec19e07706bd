import logging

import uvicorn
from fastapi import Depends, FastAPI, HTTPException
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from api.products_api import app as products_api
from api.products_api import get_store
from utils.db_utils import ProductStore

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Product Admin API")

# Include the products router
app.include_router(products_api)


@app.get("/")
def hello_world():
    return {"message": "Product Admin API"}


@app.get("/db/health", status_code=200)
def database_health_check(store: ProductStore = Depends(get_store)):
    """
    Endpoint to check database connection health

    Returns:
        dict: Health status of the database connection
    """
    try:
        store.health_check()
        logger.info("Database health check successful")
        return {"status": "healthy", "message": "Database connection successful"}
    except OperationalError as e:
        # Specific handling for connection-related errors
        error_msg = f"Database connection failed: {str(e)}"
        logger.error(error_msg)
        raise HTTPException(status_code=503, detail=error_msg)
    except SQLAlchemyError as e:
        # Catch any other SQLAlchemy-related errors
        error_msg = f"Database error: {str(e)}"
        logger.error(error_msg)
        raise HTTPException(status_code=500, detail=error_msg)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
