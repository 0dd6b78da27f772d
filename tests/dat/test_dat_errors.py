import pytest

from interTecplot.DAT.DAT import DatFormat, decode_dat
from interTecplot.errors import (
    EncodingError,
    GrammarError,
    InvalidValueError,
    NotSupportedFeatureError,
    NumberFormatError,
    TecIOError,
    UnexpectedEOFError,
    VarLocationRangeError,
)
from interTecplot.options import DecodeOptions


def _decode(text):
    return decode_dat(text.encode())


def test_varlocation_index_past_variable_count():
    text = 'VARIABLES = "A" "B" "C" "D"\nZONE I=2, VARLOCATION=([5]=CELLCENTERED)\n'
    with pytest.raises(VarLocationRangeError):
        _decode(text)


def test_bad_number():
    with pytest.raises(NumberFormatError):
        _decode('VARIABLES = "A"\nZONE I=2\n1.0 abc\n')


def test_too_few_values():
    with pytest.raises(UnexpectedEOFError):
        _decode('VARIABLES = "A"\nZONE I=3\n1.0 2.0\n')


def test_missing_connectivity():
    text = 'VARIABLES = "A"\nZONE ZONETYPE=FETRIANGLE, N=3, E=1\n1 2 3\n1 2\n'
    with pytest.raises(UnexpectedEOFError):
        _decode(text)


def test_fe_zone_needs_counts():
    with pytest.raises(GrammarError):
        _decode('VARIABLES = "A"\nZONE ZONETYPE=FEBRICK, N=8\n')


def test_unknown_keyword():
    with pytest.raises(GrammarError):
        _decode('VARIABLES = "A"\nZONE COLOR=RED\n1\n')


def test_zone_keyword_in_file_header():
    with pytest.raises(GrammarError):
        _decode('VARIABLES = "A"\nI = 3\nZONE\n1\n')


@pytest.mark.parametrize("keyword", ["VARSHARELIST", "PARENTZONE", "CONNECTIVITYSHAREZONE", "FACES"])
def test_unsupported_zone_keywords(keyword):
    with pytest.raises(NotSupportedFeatureError):
        _decode(f'VARIABLES = "A"\nZONE {keyword}=1\n1\n')


def test_text_record_not_supported():
    with pytest.raises(NotSupportedFeatureError):
        _decode('VARIABLES = "A"\nTEXT X=1, Y=1, T="label"\n')


@pytest.mark.parametrize("zone_type", ["FEPOLYGON", "FEPOLYHEDRAL"])
def test_polygonal_zones_not_supported(zone_type):
    with pytest.raises(NotSupportedFeatureError):
        _decode(f'VARIABLES = "A"\nZONE ZONETYPE={zone_type}, N=3, E=1\n')


def test_bit_data_not_supported():
    with pytest.raises(NotSupportedFeatureError):
        _decode('VARIABLES = "A"\nZONE I=1, DT=(BIT)\n1\n')


def test_dt_count_must_match():
    with pytest.raises(InvalidValueError):
        _decode('VARIABLES = "A" "B"\nZONE I=1, DT=(SINGLE)\n1 2\n')


def test_unknown_zone_type():
    with pytest.raises(InvalidValueError):
        _decode('VARIABLES = "A"\nZONE ZONETYPE=FEPRISM, N=1, E=1\n')


def test_point_packing_with_cell_data():
    text = 'VARIABLES = "A" "B"\nZONE I=3, DATAPACKING=POINT, VARLOCATION=([2]=CELLCENTERED)\n'
    with pytest.raises(InvalidValueError):
        _decode(text)


def test_fractional_extent():
    with pytest.raises(NumberFormatError):
        _decode('VARIABLES = "A"\nZONE I=2.5\n1 2\n')


def test_zero_extent():
    with pytest.raises(InvalidValueError):
        _decode('VARIABLES = "A"\nZONE I=0\n')


def test_var_aux_index_checked():
    with pytest.raises(InvalidValueError):
        _decode('VARIABLES = "A"\nVARAUXDATA 2 Units = "m"\n')


def test_garbage_after_zone():
    with pytest.raises(GrammarError):
        _decode('VARIABLES = "A"\nZONE I=1\n1\n"stray"\n')


def test_invalid_encoding():
    with pytest.raises(EncodingError):
        decode_dat(b'TITLE = "\xff"\n')


def test_latin1_option():
    dat = DatFormat.from_bytes(
        'TITLE = "Temp\xe9rature"\nVARIABLES = "A"\n'.encode("latin-1"),
        DecodeOptions(encoding="latin-1", log_level="WARNING"),
    )
    assert dat.dataset.title == "Température"


def test_missing_file(tmp_path):
    with pytest.raises(TecIOError):
        DatFormat.open(tmp_path / "absent.dat")


def test_underscore_digits_rejected_in_data():
    with pytest.raises(NumberFormatError) as exc:
        _decode('VARIABLES = "X"\nZONE I=2\n1_0 2.0\n')
    assert exc.value.token == "1_0"


def test_underscore_digits_rejected_in_extent():
    with pytest.raises(NumberFormatError) as exc:
        _decode('VARIABLES = "X"\nZONE I=1_0\n' + "1 " * 10)
    assert exc.value.token == "1_0"


@pytest.mark.parametrize("token", ["1_0", "0x10", "1.0", "1e3"])
def test_integer_data_needs_plain_digits(token):
    with pytest.raises(NumberFormatError):
        _decode(f'VARIABLES = "N"\nZONE I=1, DT=(LONGINT)\n{token}\n')


def test_underscore_digits_rejected_in_varlocation():
    text = 'VARIABLES = "A" "B"\nZONE I=2, VARLOCATION=([1_0]=CELLCENTERED)\n'
    with pytest.raises(NumberFormatError):
        _decode(text)
