"""Flask application serving the waitlist form"""
from flask import Flask, jsonify, redirect, render_template, request, session, url_for
from flask_cors import CORS
import traceback
import uuid

from config.settings import CORS_ORIGINS, DEBUG, PORT, SECRET_KEY
from services.form_session_service import FormSessionRegistry
from services.waitlist_service import FORM_FIELDS, Phase, render_view
from services import waitlist_service
from utils.logger import log_error, log_info

app = Flask(__name__)
app.secret_key = SECRET_KEY
CORS(app, resources={
    r"/api/*": {
        "origins": CORS_ORIGINS,
        "methods": ["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        "allow_headers": ["Content-Type"],
        "supports_credentials": True
    }
})

# One form per browser session
forms = FormSessionRegistry()

# HTTP status for each failure kind of a submit
FAILURE_STATUS = {
    waitlist_service.FAILURE_VALIDATION: 400,
    waitlist_service.FAILURE_DUPLICATE: 409,
    waitlist_service.FAILURE_MISSING_COLLECTION: 500,
    waitlist_service.FAILURE_STORE: 500,
    waitlist_service.FAILURE_TRANSPORT: 503,
}

def get_form_session_id(create=True):
    """Get the caller's form session ID from the signed session cookie"""
    form_id = session.get('form_id')
    if not form_id and create:
        form_id = uuid.uuid4().hex
        session['form_id'] = form_id
    return form_id

def get_form():
    """Get the caller's form, creating it on the first edit or submit"""
    return forms.get(get_form_session_id())

def get_form_view():
    """Render model of the caller's form; read-only requests never create one"""
    form = forms.find(get_form_session_id(create=False))
    return form.view() if form else render_view()

@app.route('/health')
def health_check():
    return jsonify({
        "status": "healthy",
        "message": "Waitlist service is running"
    })

@app.route('/', methods=['GET'])
def waitlist_page():
    """Render the waitlist form"""
    return render_template('waitlist.html', form=get_form_view())

@app.route('/', methods=['POST'])
def waitlist_page_submit():
    """Plain HTML form post: apply both fields and submit"""
    form = get_form()
    for field in FORM_FIELDS:
        form.update_field(field, request.form.get(field, ''))
    form.submit()
    return redirect(url_for('waitlist_page'))

@app.route('/api/waitlist/form', methods=['GET'])
def get_waitlist_form():
    """Get the current form state"""
    return jsonify(get_form_view()), 200

@app.route('/api/waitlist/form', methods=['PATCH'])
def update_waitlist_form():
    """Edit one or both form fields"""
    try:
        data = request.get_json(silent=True)
        if not data or not isinstance(data, dict):
            return jsonify({"error": "No data provided"}), 400

        unknown = [key for key in data if key not in FORM_FIELDS]
        if unknown:
            return jsonify({"error": f"Unknown form field(s): {', '.join(unknown)}"}), 400

        form = get_form()
        for field in FORM_FIELDS:
            if field in data and not form.update_field(field, data[field]):
                return jsonify({"error": "Submission in progress", "form": form.view()}), 409

        return jsonify(form.view()), 200
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        log_error("Error updating waitlist form", error=e, traceback_str=traceback.format_exc())
        return jsonify({"error": str(e)}), 500

@app.route('/api/waitlist/form/submit', methods=['POST'])
def submit_waitlist_form():
    """Submit the form to the waitlist table"""
    try:
        form = get_form()
        state = form.submit()

        if state.phase == Phase.SUBMITTED:
            return jsonify(form.view()), 201
        if state.phase == Phase.SUBMITTING:
            return jsonify({"error": "Submission already in progress", "form": form.view()}), 409

        return jsonify(form.view()), FAILURE_STATUS.get(state.failure, 500)
    except Exception as e:
        log_error("Error submitting waitlist form", error=e, traceback_str=traceback.format_exc())
        return jsonify({"error": str(e)}), 500

@app.route('/api/waitlist/form', methods=['DELETE'])
def close_waitlist_form():
    """Tear down the caller's form, cancelling any pending reset"""
    form_id = get_form_session_id(create=False)
    if form_id:
        forms.discard(form_id)
        session.pop('form_id', None)
    return '', 204

if __name__ == '__main__':
    log_info(f"Starting waitlist service on port {PORT}")
    app.run(host='0.0.0.0', port=PORT, debug=DEBUG)
