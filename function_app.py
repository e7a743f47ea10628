import os
import logging
import azure.functions as func

from src.function_blueprints.transform_image_blueprint import bp as transform_image_bp

app = func.FunctionApp()
app.register_functions(transform_image_bp)


def _configure_logging() -> None:
    lvl = (os.getenv("AZURE_SDK_LOG_LEVEL") or "").upper()
    if lvl:
        level = getattr(logging, lvl, logging.INFO)
        logging.getLogger("azure").setLevel(level)
    own = (os.getenv("IMAGEPIPE_LOG_LEVEL") or "INFO").upper()
    logging.getLogger("imagepipe").setLevel(getattr(logging, own, logging.INFO))
    logging.getLogger("PIL").setLevel(logging.WARNING)


_configure_logging()
