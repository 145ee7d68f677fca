import base64
import json
from io import BytesIO
from typing import Optional

import qrcode

from ..logging import get_logger


log = get_logger("ermakplan.qr")


def part_qr_payload(part) -> str:
    return json.dumps({"id": part.id, "name": part.name, "partNumber": part.part_number})


def generate_qr_data_url(data: str, box_size: int = 8) -> str:
    """PNG QR code for `data` as a data URL the client can drop into <img src>."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = BytesIO()
    img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def part_qr_code(part) -> Optional[str]:
    try:
        return generate_qr_data_url(part_qr_payload(part))
    except Exception as e:
        # A missing QR image never blocks saving the part
        log.warning("qr_generation_failed", part_id=part.id, error=str(e))
        return None
