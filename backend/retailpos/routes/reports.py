from flask import Blueprint, current_app, jsonify, request

from retailpos.services import analytics_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api")


@reports_bp.get("/dashboard/stats")
def dashboard_stats():
    as_of = request.args.get("as_of")

    try:
        stats = analytics_service.dashboard_stats(as_of=as_of)
        return jsonify(stats), 200
    except analytics_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to compute dashboard stats")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/dashboard/alerts")
def dashboard_alerts():
    as_of = request.args.get("as_of")

    try:
        expiring = analytics_service.expiring_alerts(as_of=as_of)
        low_stock = analytics_service.low_stock_alerts()
        return jsonify({"low_stock": low_stock, "expiring": expiring}), 200
    except analytics_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to compute dashboard alerts")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/reports")
def sales_report():
    start = request.args.get("start")
    end = request.args.get("end")

    try:
        report = analytics_service.sales_report(start=start, end=end)
        return jsonify(report), 200
    except analytics_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to build sales report")
        return jsonify({"error": "Internal server error"}), 500
