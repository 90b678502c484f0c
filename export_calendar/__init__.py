# Azure Function (Python) - HTTP trigger
import json
import logging
import os

import azure.functions as func

from meeting_sources import meetings_from_payload
from meetings_to_ics_impl import ExportConfig, meetings_to_calendar


def load_config(env=os.environ) -> ExportConfig:
    defaults = ExportConfig()
    return ExportConfig(
        product_id=env.get("ICS_PRODUCT_ID") or defaults.product_id,
        uid_domain=env.get("ICS_UID_DOMAIN") or defaults.uid_domain,
        strict_weekdays=env.get("ICS_STRICT_WEEKDAYS", "").lower() in ("1", "true", "yes"),
    )


def main(req: func.HttpRequest) -> func.HttpResponse:
    try:
        payload = json.loads(req.get_body().decode("utf-8"))
        meetings = meetings_from_payload(payload)
        ics = meetings_to_calendar(meetings, config=load_config())
    except ValueError as e:
        logging.exception("Conversion failed")
        return func.HttpResponse(f"Error: {e}", status_code=400)
    logging.info("Exported %d meeting(s)", len(meetings))
    return func.HttpResponse(
        ics,
        status_code=200,
        mimetype="text/calendar",
        charset="utf-8",
        headers={"Content-Disposition": "attachment; filename=meetings.ics"},
    )
