from flask import Flask, request, jsonify, Response, stream_with_context
from flask_cors import CORS
import os
import logging

import requests

# Setup Logging
logging.basicConfig(
    filename=os.environ.get('LOG_FILE'),
    level=logging.DEBUG,
    format='%(asctime)s %(levelname)s: %(message)s'
)
logging.info("Server starting up...")

from backend.statements.config import Config
from backend.statements.extract import ParserServiceClient, ParserServiceError
from backend.statements.pipeline import StatementPipeline
from backend.supabase_client import SupabaseLogger
from backend.uploads import UploadStore, UploadError


app = Flask(__name__)
CORS(app, resources={r"/api/*": {"origins": Config.ALLOWED_ORIGINS}})

# Collaborators (module-level so tests can swap them)
db_logger = SupabaseLogger()
parser_client = ParserServiceClient()
upload_store = UploadStore(Config.UPLOAD_FOLDER, Config.ALLOWED_EXTENSIONS, Config.MAX_FILE_SIZE)
statement_pipeline = StatementPipeline(audit=db_logger)


@app.route('/', methods=['GET'])
def health():
    return "Statement backend is alive", 200


@app.route('/api/statements/process', methods=['POST'])
def process_statement():
    file = request.files.get('statement')
    bank_name = request.form.get('bankName')
    password = request.form.get('password')
    user_id = request.form.get('user_id')

    # ─── 1. Validation & Storage (before anything reaches the parser) ───
    try:
        upload = upload_store.save(file)
    except UploadError as e:
        return jsonify({"success": False, "message": str(e)}), e.status_code

    logging.info(f"Processing: {upload.original_name}")
    run = statement_pipeline.start(upload.original_name, user_id=user_id, bank_name=bank_name)

    # ─── 2. Open the parser stream (failures here are synchronous) ───
    try:
        upstream = parser_client.open(upload.path, upload.original_name,
                                      bank_name=bank_name, password=password)
    except (ParserServiceError, requests.RequestException) as e:
        logging.error(f"Parser service request failed for {upload.original_name}: {e}")
        run.fail(e)
        upload.release()
        return jsonify({
            "success": False,
            "message": "Error processing statement",
            "error": str(e)
        }), 502
    except Exception as e:
        logging.exception("UPSTREAM_OPEN_ERROR")
        run.fail(e)
        upload.release()
        return jsonify({
            "success": False,
            "message": "Error processing statement",
            "error": str(e)
        }), 500

    # ─── 3. Stream normalized events downstream ───
    def generate():
        try:
            yield from statement_pipeline.process(parser_client.iter_chunks(upstream), run)
        finally:
            upstream.close()
            upload.release()

    response = Response(stream_with_context(generate()), mimetype='application/x-ndjson')

    # Runs even when the client disconnects before the body is iterated
    @response.call_on_close
    def cleanup():
        upstream.close()
        upload.release()
        if run.outcome is None:
            run.fail("Stream closed before completion")

    return response


@app.route('/api/statements', methods=['GET'])
def get_statements():
    user_id = request.args.get('user_id')
    if not user_id:
        return jsonify({"success": False, "message": "user_id required"}), 400
    return jsonify({"success": True, "statements": db_logger.get_statement_history(user_id)})


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    app.run(host='0.0.0.0', port=port, debug=os.environ.get('FLASK_DEBUG', 'False') == 'True')
