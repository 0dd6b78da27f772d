from loguru import logger

from interTecplot.DAT.DAT import decode_dat
from interTecplot.Log import Log
from interTecplot.options import DecodeOptions

SMALL = b'VARIABLES = "A"\nZONE I=1\n1\n'


def test_log_is_a_singleton():
    assert Log() is Log()


def test_log_file_sink(tmp_path):
    log_file = tmp_path / "logs" / "decode.log"
    decode_dat(SMALL, DecodeOptions(log_file=log_file, log_level="DEBUG"))
    Log().close()  # flushes and drops the file sink
    text = log_file.read_text()
    assert "decoded dat 'Dataset'" in text
    assert "zone 1" in text


def test_host_sinks_survive_decoding():
    messages = []
    sink_id = logger.add(messages.append, level="INFO")
    try:
        decode_dat(SMALL)
        decode_dat(SMALL, DecodeOptions(log_level="WARNING"))
        logger.info("host still listening")
    finally:
        # raises ValueError if a decode removed the host's sink
        logger.remove(sink_id)
    assert any("host still listening" in m for m in messages)


def test_package_is_silent_until_enabled():
    Log().close()
    messages = []
    sink_id = logger.add(messages.append, level="DEBUG")
    try:
        decode_dat(SMALL)
        assert messages == []
        logger.enable("interTecplot")
        decode_dat(SMALL)
    finally:
        logger.remove(sink_id)
    assert any("decoded dat" in m for m in messages)
