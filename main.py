from flask import Flask, request, jsonify
from flask_cors import CORS
from ledger import WeeklyDashboardProcessor
import os
import logging

# Configure logging
logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

app = Flask(__name__)

# Enable CORS for all routes (the dashboard front-end calls the API directly)
CORS(app)

# Initialize the weekly processor
processor = WeeklyDashboardProcessor()


@app.route("/api", methods=["GET"])
def api_info():
    """API information endpoint"""
    return jsonify({
        "status": "ok",
        "message": "Trainer Ledger API",
        "version": "1.0",
        "endpoints": {
            "weekly_dashboard": "/weekly_dashboard [POST]",
            "allocate": "/allocate [POST]",
            "health": "/health [GET]"
        }
    }), 200


@app.route("/health", methods=["GET"])
def health():
    """Health check for monitoring"""
    return jsonify({"status": "healthy"}), 200


def _run(handler, describe):
    try:
        input_data = request.get_json(force=True, silent=True)

        if not input_data:
            return jsonify({
                "error": "No input data provided",
                "status": "failed"
            }), 400

        label = describe(input_data)
        logger.info(f"Processing {label}")

        result = handler(input_data)

        logger.info(f"Processed successfully: {label}")

        return jsonify(result), 200

    except (ValueError, KeyError, TypeError) as e:
        # Validation errors from engine
        logger.error(f"Validation error: {str(e)}")
        return jsonify({
            "error": str(e),
            "status": "validation_failed"
        }), 400

    except Exception as e:
        # Unexpected errors
        logger.error(f"Processing error: {str(e)}", exc_info=True)
        return jsonify({
            "error": "An unexpected error occurred during processing",
            "status": "failed"
        }), 500


@app.route("/weekly_dashboard", methods=["POST"])
def weekly_dashboard():
    """
    Compute a trainer's weekly client rows, income summary and breakdown
    """
    return _run(
        processor.process_from_dict,
        lambda data: f"week {data.get('week') or data.get('weekStart')} for trainer {data.get('trainer', {}).get('id')}",
    )


@app.route("/allocate", methods=["POST"])
def allocate():
    """
    Rebalance a client's sessions across their packages
    """
    return _run(
        processor.allocate_from_dict,
        lambda data: f"allocation for client {data.get('clientId', data.get('client_id'))}",
    )


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port, debug=False)
