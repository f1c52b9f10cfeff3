from datetime import datetime, timezone
import logging
import os
import secrets
from functools import wraps
from flask import Flask, Blueprint, request, g, jsonify, current_app
from flask_cors import CORS
from slot_booking.booking import error_utils
from slot_booking.booking.booking_store import BookingStore
from slot_booking.booking.persistence import JsonFilePersistence
logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'slots-data.json')
DEFAULT_PORT = 3001

bp = Blueprint('booking', __name__)


def create_app(test_config=None):
    app = Flask(__name__)
    app.secret_key = secrets.token_hex(32) #256 bit
    app.config['SECRET_KEY'] = app.secret_key
    app.config['BOOKING_DATA_FILE'] = os.environ.get('BOOKING_DATA_FILE', DEFAULT_DATA_FILE)
    # Optional StorePersistence instance, takes precedence over the data file
    app.config['BOOKING_PERSISTENCE'] = None
    if test_config:
        app.config.update(test_config)

    persistence = app.config['BOOKING_PERSISTENCE'] or JsonFilePersistence(app.config['BOOKING_DATA_FILE'])
    # One store per app so every request shares the same lock
    app.extensions['booking_store'] = BookingStore(persistence)

    # Booking front-end is served from another origin
    CORS(app)
    app.register_blueprint(bp)
    app.register_error_handler(404, handle_not_found)
    app.register_error_handler(405, handle_method_not_allowed)
    app.register_error_handler(error_utils.PersistenceError, handle_persistence_error)
    return app


# Use decorator to put the app's booking store on g for the routes that need it
def with_booking_store(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.store = current_app.extensions['booking_store']
        return f(*args, **kwargs)
    return decorated_function


# Available and booked slots for a date. Query param: date=YYYY-MM-DD
@bp.route('/slots', methods=['GET'])
@with_booking_store
def get_slots():
    date = request.args.get('date')
    if not date:
        return jsonify({"error": "Date required in YYYY-MM-DD format"}), 400
    try:
        availability = g.store.get_availability(date)
    except error_utils.InvalidInputError as e:
        return jsonify({"error": e.message}), 400
    return jsonify(availability)


@bp.route('/book', methods=['POST'])
@with_booking_store
def book_slot():
    # silent=True so a missing or malformed body is treated like missing fields
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    date = payload.get('date')
    slot = payload.get('slot')
    if not date or not slot:
        return jsonify({"success": False, "error": "Date and slot are required"}), 400

    try:
        booking = g.store.book(date, slot, client=payload.get('client'), vehicle=payload.get('vehicle'))
    except error_utils.InvalidInputError as e:
        return jsonify({"success": False, "error": e.message}), 400
    except error_utils.SlotAlreadyBookedError as e:
        return jsonify({"success": False, "error": e.message}), 409
    return jsonify({"success": True, "date": booking.date, "slot": booking.slot})


@bp.route('/bookings', methods=['GET'])
@with_booking_store
def get_bookings():
    bookings = [booking.to_dict() for booking in g.store.list_bookings()]
    return jsonify({"totalBookings": len(bookings), "bookings": bookings})


# id format is DATE-HH-MM, ex: /booking/2024-06-08-09-00
@bp.route('/booking/<booking_id>', methods=['DELETE'])
@with_booking_store
def delete_booking(booking_id):
    try:
        g.store.cancel(booking_id)
    except error_utils.BookingNotFoundError as e:
        return jsonify({"success": False, "error": e.message}), 404
    return jsonify({"success": True, "message": "Booking deleted successfully"})


@bp.route('/health', methods=['GET'])
def health():
    timestamp = datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')
    return jsonify({"status": "ok", "timestamp": timestamp})


def handle_not_found(error):
    return jsonify({"error": "Not found"}), 404


def handle_method_not_allowed(error):
    return jsonify({"error": "Method not allowed"}), 405


# Failed reads and writes of the data file. Already logged where they happened.
def handle_persistence_error(error):
    return jsonify({"success": False, "error": error.message}), 500


app = create_app()

if __name__ == '__main__':
    port = int(os.environ.get('PORT', DEFAULT_PORT))
    logger.info(f"Booking backend started on http://localhost:{port}")
    # Debug reloader everywhere but production
    app.run(debug=os.environ.get('FLASK_ENV') != 'production', port=port)
