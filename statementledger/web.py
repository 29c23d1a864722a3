"""HTTP front end: upload a statement PDF, preview the ledger, download it."""
import logging
import os
import time
import uuid
from typing import Any, Mapping, Optional

from flask import Flask, current_app, jsonify, request, send_from_directory
from werkzeug.utils import secure_filename

from .converter import StatementConverter
from .errors import LedgerError
from .export import FORMATS, output_filename, write_ledger
from .rules import DEFAULT_RULES, load_rules

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    'UPLOAD_FOLDER': 'uploads',
    'DOWNLOAD_FOLDER': 'downloads',
    'MAX_CONTENT_LENGTH': 10 * 1024 * 1024,  # 10MB max file size
    'DOWNLOAD_MAX_AGE': 2 * 60 * 60,  # seconds
    'LEDGER_RULES_PATH': None,
}


def cleanup_old_downloads(folder: str, max_age: float) -> int:
    """Remove generated files older than *max_age* seconds."""
    cutoff = time.time() - max_age
    removed = 0
    for name in os.listdir(folder):
        path = os.path.join(folder, name)
        try:
            if os.path.isfile(path) and os.path.getmtime(path) < cutoff:
                os.remove(path)
                removed += 1
        except OSError as e:
            logger.warning(f"Could not remove {path}: {e}")
    if removed:
        logger.info(f"Removed {removed} expired download(s)")
    return removed


def _error(message: str, status: int):
    return jsonify({'success': False, 'error': message}), status


def create_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    app = Flask(__name__)
    app.config.update(DEFAULT_CONFIG)
    app.config['LEDGER_RULES_PATH'] = os.environ.get('STATEMENTLEDGER_RULES')
    if config:
        app.config.update(config)

    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)
    os.makedirs(app.config['DOWNLOAD_FOLDER'], exist_ok=True)

    rules_path = app.config.get('LEDGER_RULES_PATH')
    rules = load_rules(rules_path) if rules_path else DEFAULT_RULES
    app.extensions['statement_converter'] = StatementConverter(rules)

    @app.before_request
    def log_request():
        logger.info(f"{request.method} {request.path}")

    @app.route('/test')
    def test():
        return jsonify({'message': 'Server is running'})

    @app.route('/preview', methods=['POST'])
    def preview():
        return _handle_upload(include_data=True)

    @app.route('/convert', methods=['POST'])
    def convert():
        return _handle_upload(include_data=False)

    @app.route('/downloads/<path:filename>')
    def download(filename):
        return send_from_directory(
            os.path.abspath(current_app.config['DOWNLOAD_FOLDER']), filename, as_attachment=True
        )

    @app.errorhandler(413)
    def too_large(e):
        return _error('File too large (10MB limit)', 413)

    return app


def _handle_upload(include_data: bool):
    upload = request.files.get('file')
    if upload is None or upload.filename == '':
        return _error('No file uploaded', 400)

    if upload.mimetype != 'application/pdf' and not upload.filename.lower().endswith('.pdf'):
        return _error(f'Invalid file type: {upload.mimetype}. Only PDF files are allowed', 400)

    fmt = (request.form.get('format') or 'xlsx').lower()
    if fmt not in FORMATS:
        return _error(f'Unsupported format: {fmt}', 400)

    config = current_app.config
    cleanup_old_downloads(config['DOWNLOAD_FOLDER'], config['DOWNLOAD_MAX_AGE'])

    upload_path = os.path.join(
        config['UPLOAD_FOLDER'], f"{uuid.uuid4().hex}_{secure_filename(upload.filename) or 'statement.pdf'}"
    )
    upload.save(upload_path)
    converter = current_app.extensions['statement_converter']

    try:
        statement = converter.convert_pdf(upload_path, password=request.form.get('password') or None)
        filename = output_filename(fmt)
        write_ledger(statement, os.path.join(config['DOWNLOAD_FOLDER'], filename), fmt)
    except LedgerError as e:
        logger.warning(f"Conversion failed for {upload.filename}: {e.user_message}")
        return _error(e.user_message, 422)
    except Exception as e:
        logger.exception(f"Error processing {upload.filename}")
        return _error(f'File processing failed: {str(e)}', 500)
    finally:
        try:
            os.remove(upload_path)
        except OSError as e:
            logger.error(f"Error cleaning up input file: {e}")

    body = {'success': True, 'downloadUrl': f'/downloads/{filename}'}
    if include_data:
        body['data'] = statement.to_dict()
    return jsonify(body)


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(message)s")
    create_app().run(debug=True, host='0.0.0.0', port=int(os.environ.get('PORT', 3001)))
