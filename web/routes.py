"""
Flask routes for the game review API.
"""

from flask import current_app, jsonify, request

from review.errors import InputError, SaveFileError
from review.saved import SavedAnalysis, saved_analysis_from_dict


def register_routes(app):
    """Register all routes with the Flask app."""

    def orchestrator():
        return current_app.config['ORCHESTRATOR']

    @app.route('/health')
    def health():
        """Health check endpoint."""
        return {'status': 'ok'}

    @app.route('/api/analyse', methods=['POST'])
    def analyse():
        """
        Start reviewing a game in the background.

        Expects JSON body:
        {
            "pgn": "1. e4 e5 ...",
            "depth": optional-integer (1-24)
        }

        Returns 202 {"started": true} when the review starts, or
        200 {"started": false} if a review is already running (nothing changes).
        """
        data = request.get_json(silent=True)
        if not data:
            return jsonify({'error': 'missing JSON body'}), 400

        pgn = data.get('pgn')
        depth = data.get('depth')
        if not isinstance(pgn, str):
            return jsonify({'error': 'Provide a game to analyse.'}), 400

        try:
            started = orchestrator().start(pgn, depth)
        except InputError as e:
            return jsonify({'error': str(e)}), 400

        if not started:
            return jsonify({'started': False, 'state': 'running'})

        return jsonify({'started': True}), 202

    @app.route('/api/progress')
    def progress():
        """Current review state, progress percentage and status message."""
        review = orchestrator()
        return jsonify({
            'state': review.state.value,
            'progress': round(review.progress, 1),
            'status': review.status,
            'error': str(review.error) if review.error else None,
        })

    @app.route('/api/report')
    def report():
        """The last finished review in saved-analysis format."""
        result = orchestrator().result
        if result is None:
            return jsonify({'error': 'no report available'}), 404
        return jsonify(SavedAnalysis.from_result(result).to_dict())

    @app.route('/api/load', methods=['POST'])
    def load():
        """Validate and replay a saved analysis without evaluating anything."""
        try:
            saved = saved_analysis_from_dict(request.get_json(silent=True))
        except SaveFileError as e:
            return jsonify({'error': str(e)}), 400
        return jsonify(saved.to_dict())
