#!/usr/bin/env python3
"""
Background Recolor API Server
Two-step flow: click a background pixel (preview mask), then process.
"""

import os
import logging
import uuid
from io import BytesIO
from typing import Optional
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from flask import Flask, request, jsonify, send_file
from flask_cors import CORS
from werkzeug.utils import secure_filename

# --- Centralized Logging Configuration ---
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
    datefmt='%H:%M:%S'
)

# Import services and models
from services.image_service import ImageService
from services.background_service import BackgroundService
from pipeline.background_replacer import DEFAULT_BG_COLOR, DEFAULT_BLUR_RADIUS, DEFAULT_TOLERANCE
from models.color import parse_hex_color
from models.errors import OutOfBounds, ShapeMismatch
from models.image import Image

app = Flask(__name__)
CORS(app)  # Enable CORS for frontend communication

# Configuration
ALLOWED_EXTENSIONS = set(os.getenv("ALLOWED_EXTENSIONS", "png,jpg,jpeg,bmp,webp").split(","))
MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_SIZE_MB", "20")) * 1024 * 1024

app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH

# Initialize services
image_service = ImageService()
background_service = BackgroundService()

logger = logging.getLogger(__name__)

# Session storage for click → process state
sessions = {}


class RecolorSession:
    """Manages state for a single user's photo."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.image: Optional[Image] = None
        self.processed_pixels = None

    def clear(self):
        """Clear the image and its mask from memory."""
        if self.image is not None:
            background_service.seg_service.forget(self.image)
        self.image = None
        self.processed_pixels = None


def get_or_create_session(session_id: str = None) -> RecolorSession:
    """Get existing session or create new one."""
    if session_id is None:
        session_id = str(uuid.uuid4())

    if session_id not in sessions:
        sessions[session_id] = RecolorSession(session_id)

    return sessions[session_id]


def allowed_file(filename: str) -> bool:
    """Check if file extension is allowed."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def _require_session(payload: dict):
    session_id = payload.get('session_id')
    if not session_id or session_id not in sessions or sessions[session_id].image is None:
        return None
    return sessions[session_id]


@app.route('/api/upload', methods=['POST'])
def upload_image():
    """Load the photo into a fresh session."""
    try:
        if 'image' not in request.files:
            return jsonify({'success': False, 'message': 'No image provided'}), 400

        file = request.files['image']
        if file.filename == '' or not allowed_file(file.filename):
            return jsonify({'success': False, 'message': 'Please choose an image file'}), 400

        session = get_or_create_session(request.form.get('session_id'))
        session.clear()

        filename = secure_filename(file.filename)
        logger.info(f"Loading {filename} for session {session.session_id}")
        session.image = image_service.decode(file.read())
        image_service.preserve_original_state(session.image)

        return jsonify({
            'success': True,
            'session_id': session.session_id,
            'width': session.image.width,
            'height': session.image.height,
        })

    except ValueError as e:
        return jsonify({'success': False, 'message': str(e)}), 400
    except Exception as e:
        logger.error(f"Upload error: {e}")
        return jsonify({'success': False, 'message': 'Error loading image'}), 500


@app.route('/api/select', methods=['POST'])
def select_background():
    """Grow the background mask from the clicked pixel and return a red preview."""
    try:
        payload = request.get_json(silent=True) or {}
        session = _require_session(payload)
        if session is None:
            return jsonify({'success': False, 'message': 'Please upload an image first'}), 404

        try:
            x, y = int(payload['x']), int(payload['y'])
            tolerance = int(payload.get('tolerance', DEFAULT_TOLERANCE))
        except (KeyError, TypeError, ValueError):
            return jsonify({'success': False, 'message': 'x and y must be integers'}), 400

        mask = background_service.seg_service.select_region(session.image, (x, y), tolerance)
        stats = background_service.seg_service.mask_stats(mask)
        preview = background_service.preview_selection(session.image)

        return jsonify({
            'success': True,
            'session_id': session.session_id,
            **stats,
            'preview': image_service.to_base64(preview),
        })

    except (OutOfBounds, ValueError) as e:
        return jsonify({'success': False, 'message': str(e)}), 400
    except Exception as e:
        logger.error(f"Selection error: {e}")
        return jsonify({'success': False, 'message': 'Error detecting background'}), 500


@app.route('/api/process', methods=['POST'])
def process_image():
    """Recolour the selected region."""
    try:
        payload = request.get_json(silent=True) or {}
        session = _require_session(payload)
        if session is None:
            return jsonify({'success': False, 'message': 'Please upload an image first'}), 404
        if not background_service.seg_service.has_mask(session.image):
            return jsonify({'success': False,
                            'message': 'Click the background on the photo first'}), 409

        color = parse_hex_color(payload.get('color', DEFAULT_BG_COLOR))
        try:
            blur_radius = int(payload.get('blur_radius', DEFAULT_BLUR_RADIUS))
        except (TypeError, ValueError):
            return jsonify({'success': False, 'message': 'blur_radius must be an integer'}), 400

        new_pixels = background_service.replace_with_color(session.image, color, blur_radius)
        session.processed_pixels = new_pixels

        return jsonify({
            'success': True,
            'session_id': session.session_id,
            'color': color.to_hex(),
            'image': image_service.to_base64(new_pixels),
            'download_url': f"/api/download/{session.session_id}",
        })

    except (ShapeMismatch, ValueError) as e:
        return jsonify({'success': False, 'message': str(e)}), 400
    except Exception as e:
        logger.error(f"Processing error: {e}")
        return jsonify({'success': False, 'message': 'Image processing failed, please retry'}), 500


@app.route('/api/download/<session_id>')
def download_image(session_id):
    """Serve the processed photo as PNG."""
    session = sessions.get(session_id)
    if session is None or session.processed_pixels is None:
        return jsonify({'error': 'Image not found'}), 404
    data = image_service.to_png_bytes(session.processed_pixels)
    return send_file(BytesIO(data), mimetype='image/png',
                     as_attachment=True, download_name='processed_photo.png')


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'message': 'Background Recolor API is running',
        'active_sessions': len(sessions)
    })


@app.route('/api/clear-session', methods=['POST'])
def clear_session():
    """Clear a session and free memory."""
    payload = request.get_json(silent=True) or {}
    session_id = payload.get('session_id')
    if session_id and session_id in sessions:
        sessions[session_id].clear()
        del sessions[session_id]
        return jsonify({'success': True, 'message': 'Session cleared'})
    return jsonify({'success': False, 'message': 'Session not found'})


@app.errorhandler(413)
def too_large(e):
    """Handle file too large error."""
    return jsonify({'error': f'File too large. Maximum size is {MAX_CONTENT_LENGTH // (1024*1024)}MB.'}), 413


@app.errorhandler(500)
def internal_error(e):
    """Handle internal server error."""
    logger.error(f"Internal server error: {e}")
    return jsonify({'error': 'Internal server error'}), 500


if __name__ == '__main__':
    print("🚀 Starting Background Recolor API Server...")
    print(f"🔧 Max upload size: {MAX_CONTENT_LENGTH // (1024*1024)}MB")
    print("📋 Steps:")
    print("   1. /api/upload")
    print("   2. /api/select")
    print("   3. /api/process")
    print("   4. /api/download/<session_id>")
    print("="*60)

    app.run(host=os.getenv("API_HOST", "0.0.0.0"), port=int(os.getenv("API_PORT", "5000")), debug=False)
