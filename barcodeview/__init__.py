from io import BytesIO
from os import getenv
import logging
from flask import Flask, Response, request
from dotenv import load_dotenv
from barcodeview.imaging import BarcodeFormat
from barcodeview.surfaces import CaptionSurface, ImageSurface, Visibility
from barcodeview.tasks import TaskHandler, UiThreadDispatcher
from barcodeview.writer_task import BarcodeImageWriterTask, DisplayMetrics

load_dotenv()

def _getenv_bool(name, default):
    return getenv(name, default).lower() == "true"

class Config:
    """Application configuration."""
    BARCODE_FORMAT = getenv("BARCODE_FORMAT", "QR_CODE")
    BARCODE_WIDTH = int(getenv("BARCODE_WIDTH", "400"))
    BARCODE_HEIGHT = int(getenv("BARCODE_HEIGHT", "400"))
    SCREEN_WIDTH_PIXELS = int(getenv("SCREEN_WIDTH_PIXELS", "1080"))
    DISPLAY_DENSITY = float(getenv("DISPLAY_DENSITY", "1.0"))
    SHOW_FALLBACK = _getenv_bool("SHOW_FALLBACK", "true")
    ROUND_CORNER_PADDING = _getenv_bool("ROUND_CORNER_PADDING", "true")
    TASK_WORKERS = int(getenv("TASK_WORKERS", "2"))
    MAX_SURFACE_SIZE = int(getenv("MAX_SURFACE_SIZE", "4000"))

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

task_handler = TaskHandler(max_workers=Config.TASK_WORKERS)

app = Flask(__name__)

@app.before_request
def log_requests():
    logging.debug(f"{request.method} {request.endpoint or request.path} - Query params: {dict(request.args)}")

@app.route("/")
def home_route():
    return "Barcode preview, default format %s" % Config.BARCODE_FORMAT

def get_params():
    """Extract and validate parameters from request."""
    source = request.args
    data = source.get('data', '')
    barcode_format = BarcodeFormat.from_name(source.get('format', Config.BARCODE_FORMAT))
    width = int(source.get('width', Config.BARCODE_WIDTH))
    height = int(source.get('height', Config.BARCODE_HEIGHT))
    for name, value in (('width', width), ('height', height)):
        if not 0 < value <= Config.MAX_SURFACE_SIZE:
            raise ValueError(f"{name} must be between 1 and {Config.MAX_SURFACE_SIZE}, got {value}")
    show_fallback = source.get('fallback', str(Config.SHOW_FALLBACK)).lower() == "true"
    padding = source.get('padding', str(Config.ROUND_CORNER_PADDING)).lower() == "true"
    fullscreen = source.get('fullscreen', 'false').lower() == "true"

    logging.debug(f"Extracted - data: '{data}', format: {barcode_format.name}, size: {width}x{height}")
    return data, barcode_format, width, height, show_fallback, padding, fullscreen

@app.route("/barcode")
def barcode_route():
    """Render a barcode the way an image surface would show it and return it as PNG."""
    try:
        data, barcode_format, width, height, show_fallback, padding, fullscreen = get_params()
    except ValueError as e:
        return Response(f"Invalid request: {e}", 400, mimetype="text/plain")

    surface = ImageSurface(width, height)
    caption = CaptionSurface()
    results = []
    task = BarcodeImageWriterTask(
        surface, data, barcode_format, caption,
        show_fallback, results.append, padding, fullscreen,
        DisplayMetrics(Config.SCREEN_WIDTH_PIXELS, Config.DISPLAY_DENSITY)
    )

    dispatcher = UiThreadDispatcher()
    task_handler.execute_task(TaskHandler.BARCODE, task, dispatcher).result()
    dispatcher.run_pending()

    image = surface.composite()
    if image is None:
        logging.info(f"No barcode could be displayed for format {barcode_format.name}")
        return Response("Barcode could not be rendered", 422, mimetype="text/plain")

    buf = BytesIO()
    image.save(buf, format="PNG")
    buf.seek(0)

    response = Response(buf, 200, mimetype="image/png")
    response.headers["X-Barcode-Success"] = str(bool(results and results[0])).lower()
    if caption.visibility is Visibility.VISIBLE:
        response.headers["X-Barcode-Caption"] = caption.text
    return response
