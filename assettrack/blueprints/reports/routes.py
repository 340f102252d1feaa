"""
Routes for the reports blueprint: CSV and Excel downloads.

Both reports accept the same filters as the matching list endpoint plus
``format`` (``csv`` or ``xlsx``, default ``csv``).
"""

from datetime import datetime, timezone

from flask import request, send_file

from assettrack.blueprints.assets.routes import asset_filters
from assettrack.blueprints.discrepancies.routes import discrepancy_filters
from assettrack.blueprints.reports import bp
from assettrack.decorators import authenticated, permission_required
from assettrack.errors import ValidationError
from assettrack.services import asset_service, discrepancy_service, export_service


def _format() -> str:
    fmt = (request.args.get("format") or "csv").lower()
    if fmt not in export_service.EXPORT_FORMATS:
        raise ValidationError(
            f"Invalid format '{fmt}'. Allowed: {', '.join(export_service.EXPORT_FORMATS)}"
        )
    return fmt


def _download(buffer, name: str, fmt: str):
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return send_file(
        buffer,
        mimetype=export_service.EXPORT_FORMATS[fmt],
        as_attachment=True,
        download_name=f"{name}_{stamp}.{fmt}",
    )


@bp.route("/assets")
@authenticated
@permission_required("reports.export")
def asset_report(ctx):  # pylint: disable=unused-argument
    fmt = _format()
    assets = asset_service.get_all_for_export(**asset_filters())
    return _download(export_service.export_assets(assets, fmt), "assets", fmt)


@bp.route("/discrepancies")
@authenticated
@permission_required("reports.export")
def discrepancy_report(ctx):  # pylint: disable=unused-argument
    fmt = _format()
    items = discrepancy_service.get_all_for_export(**discrepancy_filters())
    return _download(
        export_service.export_discrepancies(items, fmt), "discrepancies", fmt
    )
