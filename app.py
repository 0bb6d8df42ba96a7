import hmac
import logging
import os

from dotenv import load_dotenv
load_dotenv()  # Load .env file (MISTRAL_API_KEY, DATABASE_URL, etc.)

from flask import Flask, jsonify, request, session
from werkzeug.middleware.proxy_fix import ProxyFix

from llm_service import CompletionFetcher, LLMConfig
from models import db
from report_service import ActionState, submit_analysis
from sharing import build_share_links, log_share
from token_budget import get_tracker
from usage_service import count_usage_by_event, get_all_usage_logs

logging.basicConfig(level=logging.INFO,
                    format='%(asctime)s [%(levelname)s] %(message)s')
logger = logging.getLogger(__name__)

app = Flask(__name__)
# Trust the reverse proxy's headers so request.host_url is https in production
app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)
app.secret_key = os.environ.get('SECRET_KEY', os.urandom(24))
app.config['PREFERRED_URL_SCHEME'] = 'https'
app.config['MAX_CONTENT_LENGTH'] = 64 * 1024  # form posts only

# ---------------------------------------------------------------------------
# Database: usage logs (Postgres via DATABASE_URL, else SQLite)
# ---------------------------------------------------------------------------
database_url = os.environ.get('DATABASE_URL', '')
if database_url:
    # Hosted Postgres URLs start with postgres:// but SQLAlchemy needs postgresql://
    if database_url.startswith('postgres://'):
        database_url = database_url.replace('postgres://', 'postgresql://', 1)
    app.config['SQLALCHEMY_DATABASE_URI'] = database_url
else:
    _db_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'usage.db')
    app.config['SQLALCHEMY_DATABASE_URI'] = f'sqlite:///{_db_path}'
app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
db.init_app(app)
with app.app_context():
    db.create_all()

# ---------------------------------------------------------------------------
# Completion backend
# ---------------------------------------------------------------------------
fetcher = CompletionFetcher(LLMConfig.from_env())
if not fetcher.config.is_configured:
    logger.warning('No completion backend configured, set MISTRAL_API_KEY')
else:
    logger.info('Completion backend: %s (timeout %.0fs)',
                fetcher.config.model, fetcher.config.timeout)

# Link used in share URLs; falls back to the request's own host
SITE_URL = os.environ.get('SITE_URL', '')

# Admin token for the usage analytics endpoint
ADMIN_TOKEN = os.environ.get('ADMIN_TOKEN', '')

_STATUS_BY_ERROR = {
    'validation': 400,
    'configuration': 503,
    'upstream': 502,
    'internal': 500,
}


def _payload() -> dict:
    """JSON body if there is one, else form fields."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def _first(data: dict, *keys):
    for key in keys:
        if key in data:
            return data[key]
    return None


def _respond(state: ActionState):
    status = 200 if state.is_success else _STATUS_BY_ERROR.get(state.error, 500)
    return jsonify(state.to_dict()), status


def _admin_authorized() -> bool:
    token = request.args.get('token', '')
    return bool(ADMIN_TOKEN) and hmac.compare_digest(token, ADMIN_TOKEN)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.route('/')
def index():
    return jsonify({'service': 'what-will-it-mean-to-me', 'status': 'ok'})


@app.route('/health')
def health():
    return jsonify({'status': 'ok', 'llm_configured': fetcher.config.is_configured})


@app.route('/api/analyze', methods=['POST'])
def analyze():
    data = _payload()
    state = submit_analysis(
        fetcher,
        profession=_first(data, 'profession'),
        experience=_first(data, 'experience', 'experience_years', 'experienceYears'),
        region=_first(data, 'region'),
        skill_level=_first(data, 'skill_level', 'skillLevel'),
        details=_first(data, 'details'),
        user_id=session.get('user_id'),
    )
    if state.is_success:
        site_url = SITE_URL or request.host_url
        state.data['share_links'] = build_share_links(state.data['share_text'], site_url)
    return _respond(state)


@app.route('/api/share', methods=['POST'])
def share():
    data = _payload()
    state = log_share(data.get('network'), text=data.get('text'),
                      user_id=session.get('user_id'))
    return _respond(state)


# ---------------------------------------------------------------------------
# Admin endpoints, protected by ADMIN_TOKEN
# ---------------------------------------------------------------------------

@app.route('/admin/usage')
def usage_logs():
    if not _admin_authorized():
        return jsonify({'error': 'Unauthorized'}), 401
    try:
        limit = int(request.args.get('limit', 500))
    except ValueError:
        limit = 500
    try:
        logs = get_all_usage_logs(limit=max(1, min(limit, 5000)))
        counts = count_usage_by_event()
    except Exception as e:
        logger.error('Failed to fetch usage logs: %s', e, exc_info=True)
        return jsonify({'error': 'Failed to fetch usage logs'}), 500
    return jsonify({
        'logs': [entry.to_dict() for entry in logs],
        'counts': counts,
        'total': sum(counts.values()),
        'llm': get_tracker().summary(),
    })


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5050))
    app.run(debug=True, port=port)
