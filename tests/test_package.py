import importlib.util
import os
import sys
import types

import open_pony_mag
from open_pony_mag import constants

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def test_constants_export_only_protocol_names():
    assert 'const' not in constants.__all__
    assert 'CMD_EXIT' in constants.__all__
    assert 'DEFAULT_OVERSAMPLING' in constants.__all__
    assert not hasattr(open_pony_mag, 'const')
    assert open_pony_mag.CMD_RESET == 0xF0


def test_entry_point_does_not_start_on_import(monkeypatch):
    opened = []
    board = types.ModuleType('board')
    busio = types.ModuleType('busio')
    busio.I2C = lambda *pins: opened.append(pins)
    monkeypatch.setitem(sys.modules, 'board', board)
    monkeypatch.setitem(sys.modules, 'busio', busio)

    spec = importlib.util.spec_from_file_location('pony_entry', os.path.join(ROOT, 'code.py'))
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    assert callable(module.main)
    assert opened == []
