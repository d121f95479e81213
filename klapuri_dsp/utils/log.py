# klapuri_dsp/utils/log.py
import os

KLAP_DEBUG = bool(int(os.getenv("KLAP_DEBUG", "0")))
KLAP_PREFIX = "[KLAP]"


def klap_log(debug: bool, msg: str):
    if debug or KLAP_DEBUG:
        print(f"{KLAP_PREFIX} {msg}")
