import json
from datetime import date, datetime, time
from decimal import Decimal


class AuditEncoder(json.JSONEncoder):
    """
    JSON encoder for audit details
    Handles money values (Decimal) and appointment times
    """
    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, (datetime, date, time)):
            return obj.isoformat()
        return super().default(obj)
