"""
debug.py - Debug functions

make debug a little more clean
"""

import time


class OpenPonyDebug:
    def __init__(self, tag, enabled=True):
        self.tag = tag
        self.enabled = enabled

    def debug_message(self, s):
        if not self.enabled:
            return
        dt = time.localtime()
        now = f"{dt.tm_hour:02d}:{dt.tm_min:02d}:{dt.tm_sec:02d}"
        print(f"{now} - [{self.tag}] {s}")
