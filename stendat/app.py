from datetime import datetime, timedelta
import logging
import os
import secrets
from functools import wraps
from flask import Flask, render_template, request, flash, redirect, g, url_for, session, abort
from flask_debugtoolbar import DebugToolbarExtension
from stendat.booking import error_utils, booking_service, record_store, user_service, slot_engine
from stendat.booking import booking_utils as util

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

# Action specific messages for store failures
LOAD_FAILED_MESSAGE = "Ndodhi një gabim gjatë ngarkimit të rezervimeve. Ju lutemi provoni përsëri."
CREATE_FAILED_MESSAGE = "Ndodhi një gabim gjatë krijimit të rezervimit tuaj. Ju lutemi provoni përsëri."
DELETE_FAILED_MESSAGE = "Ndodhi një gabim gjatë fshirjes së rezervimit tuaj. Ju lutemi provoni përsëri."


def create_app():
    app = Flask(__name__)
    app.secret_key = os.environ.get('SECRET_KEY') or secrets.token_hex(32) #256 bit
    app.config['SECRET_KEY'] = app.secret_key
    app.config['RECORD_STORE'] = os.environ.get('RECORD_STORE', 'http')
    app.config['STORE_BASE_URL'] = os.environ.get('STORE_BASE_URL', record_store.DEFAULT_BASE_URL)
    app.config['STORE_TIMEOUT'] = float(os.environ.get('STORE_TIMEOUT', record_store.DEFAULT_TIMEOUT))
    app.config['DATABASE_URL'] = os.environ.get('DATABASE_URL')
    # Local wall-clock source for every past-slot decision
    app.config['CLOCK'] = datetime.now
    if not os.environ.get('FLASK_ENV') == 'production':
        app.config["DEBUG_TB_INTERCEPT_REDIRECTS"] = False  # Prevents redirect issues

    app.add_template_filter(util.format_date_header, 'date_header')
    app.add_template_filter(util.format_date_for_display, 'long_date')
    app.add_template_filter(util.format_time_slot, 'slot_label')
    app.add_template_filter(user_service.user_initials, 'initials')
    return app

app = create_app()
# Set to make Flask debug toolbar work
if not os.environ.get('FLASK_ENV') == 'production':
    app.debug=True


def open_record_store(config):
    """
    Returns the record store selected by RECORD_STORE: the HTTP collection store or the Postgres backend.
    """
    if config['RECORD_STORE'] == 'postgres':
        from stendat.booking.database import DatabasePersistence
        return DatabasePersistence(config['DATABASE_URL'])
    return record_store.RecordStoreClient(config['STORE_BASE_URL'], config['STORE_TIMEOUT'])

# Use decorator to create g.store and g.bookings within request context window for functions that require them
def instantiate_store(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            g.store = open_record_store(app.config)
        except error_utils.NetworkFailureError as e:
            logger.error("Record store unavailable")
            flash(e.message, "error")
            return render_template('error.html'), 503
        g.bookings = booking_service.BookingService(g.store, clock=app.config['CLOCK'])
        return f(*args, **kwargs)
    return decorated_function

# Release the store opened for this request, if any
@app.teardown_appcontext
def close_store(exception=None):
    store = g.pop('store', None)
    close = getattr(store, 'close', None)
    if close is not None:
        close()

# The signed-in user is read once here and handed to the view, never looked up globally
def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        current_user = user_service.SessionHolder(session).get_current_user()
        if current_user is None:
            return redirect(url_for('get_login'))
        return f(*args, current_user=current_user, **kwargs)
    return decorated_function

def _calendar_redirect(day=None):
    if day is None:
        return redirect(url_for('get_calendar'))
    return redirect(url_for('get_calendar', date=day.isoformat()))

def _parse_cell(values):
    # Malformed cell coordinates are a bad request, not a booking refusal
    try:
        day = util.parse_date_param(values.get('date'), None)
        slot = util.parse_slot_param(values.get('start'))
    except ValueError as e:
        logger.info(f"Rejecting cell parameters: {e}")
        abort(400)
    if day is None:
        abort(400)
    return day, slot


@app.route('/')
def home():
    return redirect('/calendar')

@app.route("/login", methods=['GET'])
def get_login():
    if user_service.SessionHolder(session).get_current_user():
        return redirect(url_for('get_calendar'))
    return render_template('login.html')

@app.route("/login", methods=['POST'])
@instantiate_store
def submit_login():
    username = request.form.get('username', '').strip()
    password = request.form.get('password', '')
    if not username or not password:
        flash(error_utils.InvalidCredentialsError().message, "error")
        return render_template('login.html', username=username), 422
    try:
        user = user_service.authenticate(g.store, username, password)
    except error_utils.BookingError as e:
        flash(e.message, "error")
        return render_template('login.html', username=username), 422
    user_service.SessionHolder(session).set_current_user(user)
    return redirect(url_for('get_calendar'))

@app.route("/logout", methods=['POST'])
def logout():
    user_service.SessionHolder(session).set_current_user(None)
    return redirect(url_for('get_login'))

# Week grid anchored on ?date=YYYY-MM-DD, today by default
@app.route("/calendar", methods=['GET'])
@login_required
@instantiate_store
def get_calendar(current_user):
    now = g.bookings.now()
    try:
        anchor = util.parse_date_param(request.args.get('date'), now.date())
    except ValueError:
        abort(400)
    # Weeks touching the ends of the supported date range cannot be shown
    try:
        days = slot_engine.week_dates(anchor)
        previous_week = (anchor - timedelta(days=7)).isoformat()
        next_week = (anchor + timedelta(days=7)).isoformat()
    except OverflowError:
        abort(400)
    try:
        bookings = g.bookings.load_bookings()
    except error_utils.NetworkFailureError:
        logger.error("Error loading bookings")
        flash(LOAD_FAILED_MESSAGE, "error")
        bookings = []
    grid = util.build_week_grid(bookings, days, current_user, now)
    return render_template('calendar.html',
                           user=current_user,
                           days=days,
                           grid=grid,
                           title=util.format_month_year(days),
                           previous_week=previous_week,
                           next_week=next_week,
                           anchor=anchor.isoformat())

# Cell click: refusals are shown straight away, otherwise ask for confirmation
@app.route("/calendar/book", methods=['GET'])
@login_required
@instantiate_store
def pick_cell(current_user):
    day, slot = _parse_cell(request.args)
    try:
        bookings = g.bookings.load_bookings()
        g.bookings.check_cell(bookings, day, slot, current_user)
    except error_utils.BookingError as e:
        flash(e.message, "error")
        return _calendar_redirect(day)
    return render_template('confirm.html', user=current_user, day=day, slot=slot)

# Confirmation re-validates against the store before creating
@app.route("/calendar/book", methods=['POST'])
@login_required
@instantiate_store
def confirm_booking(current_user):
    day, slot = _parse_cell(request.form)
    try:
        g.bookings.confirm_booking(day, slot, current_user)
    except error_utils.NetworkFailureError:
        logger.error("Error creating booking")
        flash(CREATE_FAILED_MESSAGE, "error")
    except error_utils.BookingError as e:
        flash(e.message, "error")
    return _calendar_redirect(day)

@app.route("/bookings/<booking_id>/delete", methods=['POST'])
@login_required
@instantiate_store
def delete_booking(booking_id, current_user):
    try:
        day = util.parse_date_param(request.form.get('date'), None)
    except ValueError:
        day = None
    try:
        g.bookings.cancel_booking(booking_id, current_user)
    except error_utils.NetworkFailureError:
        logger.error("Error deleting booking")
        flash(DELETE_FAILED_MESSAGE, "error")
    except error_utils.BookingError as e:
        flash(e.message, "error")
    return _calendar_redirect(day)

@app.errorhandler(404)
def error_handler(error):
    flash("Faqja nuk u gjet.", "error")
    return redirect(url_for('get_calendar'))


if __name__ == '__main__':
    # production
    if os.environ.get('FLASK_ENV') == 'production':
       app.run(debug=False)
    else:
       toolbar = DebugToolbarExtension(app)
       app.run(debug=True, port=5003)
