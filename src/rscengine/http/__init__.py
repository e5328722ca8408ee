# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP client exports."""

from .client import RSC_CONTENT_TYPE, FlightClient, FlightResponse
from .paths import decode_input, encode_input, split_flight_path

__all__ = [
    "RSC_CONTENT_TYPE",
    "FlightClient",
    "FlightResponse",
    "decode_input",
    "encode_input",
    "split_flight_path",
]
