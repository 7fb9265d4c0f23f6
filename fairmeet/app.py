from flask import Flask, request, jsonify, g
from flask_cors import CORS
import logging
import json
from datetime import datetime, timezone
from time import perf_counter
from typing import Optional

from .config import Settings
from .errors import ConfigurationError, FairMeetError
from .finder import FairMeetingPointFinder
from .geocoding import NominatimGeocoder
from .intent import IntentClassifier
from .maps_service import GoogleMapsService
from .openroute import OpenRouteServiceClient
from .ranker import VenueRanker
from .service import MeetInTheMiddleService
from .travel_times import TravelTimeAggregator

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings):
    handlers = [logging.StreamHandler()]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file))
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


def build_service(settings: Settings) -> Optional[MeetInTheMiddleService]:
    """Wire the provider adapters into the pipeline; None when required keys are missing"""
    if settings.missing_keys:
        logger.warning(f"Missing configuration: {', '.join(settings.missing_keys)}")
        return None

    logger.info("Initializing routing, places and geocoding providers...")
    maps_service = GoogleMapsService(settings.google_maps_api_key)
    routing = OpenRouteServiceClient(settings.ors_api_key, base_url=settings.ors_base_url)
    aggregator = TravelTimeAggregator(routing=routing, transit=maps_service)
    finder = FairMeetingPointFinder(
        aggregator,
        discovery=maps_service,
        ranker=VenueRanker(aggregator, max_concurrency=settings.venue_max_concurrency),
    )
    return MeetInTheMiddleService(
        geocoder=NominatimGeocoder(settings.nominatim_user_agent),
        classifier=IntentClassifier(settings.openai_api_key, model=settings.openai_model),
        finder=finder,
    )


def _error(message: str, status: int, error: str):
    return jsonify({'success': False, 'error': error, 'message': message}), status


def create_app(settings: Optional[Settings] = None, service: Optional[MeetInTheMiddleService] = None) -> Flask:
    settings = settings or Settings.from_env()
    if service is None:
        try:
            service = build_service(settings)
        except ValueError as e:
            logger.error(f"Error initializing providers: {e}")
            service = None

    app = Flask(__name__)
    CORS(app, origins=list(settings.allowed_origins))
    app.config['MEETING_SERVICE'] = service

    # Per-request timing: record start time and log duration on completion
    @app.before_request
    def _start_timer():
        g._start_time = perf_counter()

    @app.after_request
    def _log_request_duration(response):
        start = getattr(g, '_start_time', None)
        if start is not None:
            duration_ms = (perf_counter() - start) * 1000.0
            response.headers['X-Process-Time-ms'] = f"{duration_ms:.1f}"
            logger.info(
                "request completed: method=%s path=%s status=%s duration_ms=%.1f remote_addr=%s",
                request.method,
                request.full_path if request.query_string else request.path,
                response.status_code,
                duration_ms,
                request.remote_addr,
            )
        return response

    def _service() -> MeetInTheMiddleService:
        svc = app.config.get('MEETING_SERVICE')
        if svc is None:
            raise ConfigurationError(
                "Provider API keys are not configured (GOOGLE_MAPS_API_KEY, ORS_API_KEY)"
            )
        return svc

    @app.errorhandler(FairMeetError)
    def _handle_app_error(error: FairMeetError):
        if error.status_code >= 500:
            logger.error(f"{error.error_name}: {error.message}")
        else:
            logger.warning(f"{error.error_name}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.route('/', methods=['GET'])
    def health_check():
        """Health check endpoint"""
        return jsonify({
            'message': 'Fair Meet API is running!',
            'endpoints': {
                'find_middle': '/api/find-middle',
                'geocode': '/api/geocode',
                'interpret': '/api/interpret',
                'health': '/api/health'
            },
            'status': 'healthy',
            'configured': app.config.get('MEETING_SERVICE') is not None,
        })

    @app.route('/api/health', methods=['GET'])
    def api_health():
        return jsonify({'status': 'ok', 'timestamp': datetime.now(timezone.utc).isoformat()})

    @app.route('/api/geocode', methods=['POST'])
    def geocode_address():
        """
        Geocode a single address
        Expected JSON: {"address": "10 Downing St, London"}
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        if not data.get('address'):
            return _error('Address is required', 400, 'ValidationError')

        result = _service().geocode(data['address'])
        logger.info(f"Geocoding successful - lat: {result.location.lat}, lng: {result.location.lng}")
        return jsonify({
            'success': True,
            'data': {
                'lat': result.location.lat,
                'lng': result.location.lng,
                'display_name': result.display_name,
            }
        })

    @app.route('/api/interpret', methods=['POST'])
    def interpret_intent():
        """
        Interpret a free-text destination intent
        Expected JSON: {"intent": "somewhere quiet for coffee"}
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        if not data.get('intent'):
            return _error('Intent is required', 400, 'ValidationError')
        intent = _service().interpret(data['intent'])
        return jsonify({'success': True, 'data': intent.to_dict()})

    @app.route('/api/find-middle', methods=['POST'])
    def find_middle():
        """
        Find the fairest meeting point and rank venues around it
        Expected JSON: {
            "participants": [
                {"name": "Ana", "address": "...", "transport_mode": "driving"},
                {"name": "Ben", "address": "...", "transport_mode": "transit"}
            ],
            "intent": "grab a coffee"
        }
        """
        logger.info("=== FIND MIDDLE REQUEST ===")
        data = request.get_json(silent=True)
        if not data or not isinstance(data, dict):
            return _error('JSON data is required', 400, 'ValidationError')
        logger.debug(f"Request data received: {json.dumps(data, indent=2)}")

        _algo_start = perf_counter()
        plan = _service().plan(data.get('participants'), data.get('intent'))
        _compute_ms = (perf_counter() - _algo_start) * 1000.0
        logger.info(
            "Time to find middle = %.1f ms (%d venues, fallback=%s)",
            _compute_ms, len(plan.result.venues), plan.result.fallback,
        )

        response = jsonify({'success': True, 'data': plan.to_dict()})
        response.headers['X-Compute-Time-ms'] = f"{_compute_ms:.1f}"
        return response

    @app.errorhandler(404)
    def not_found(error):
        return _error(f"Route {request.method} {request.path} not found", 404, 'NotFound')

    @app.errorhandler(500)
    def internal_error(error):
        return _error('Internal server error', 500, 'InternalServerError')

    return app


if __name__ == '__main__':
    _settings = Settings.from_env()
    configure_logging(_settings)
    create_app(_settings).run(host=_settings.host, port=_settings.port, debug=True)
