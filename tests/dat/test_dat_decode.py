import numpy as np
import pytest
from loguru import logger

from interTecplot.Core.Enums import DataKind, FileType, TecDataType, ValueLocation, ZoneType
from interTecplot.Core.Zones import ClassicFEZone, OrderedZone
from interTecplot.DAT.DAT import DatFormat, decode_dat, parse_values, resolve_var_locations
from interTecplot.errors import NumberFormatError, VarLocationRangeError

FIN = """\
TITLE = "Heated fin"
VARIABLES = "X", "Y", "T"
DATASETAUXDATA Solver = "demo"
VARAUXDATA 3 Units = "K"
ZONE T="grid", I=3, J=2, DATAPACKING=BLOCK, VARLOCATION=([3]=CELLCENTERED)
STRANDID=1, SOLUTIONTIME=2.5
AUXDATA Common.Time = "2.5"
DT=(SINGLE DOUBLE DOUBLE)
# x
0 1 2 0 1 2
# y
0 0 0 1 1 1
10 11
ZONE T="tri", ZONETYPE=FETRIANGLE, N=3, E=1, DATAPACKING=POINT
0.0 0.0 5.0
1.0 0.0 6.0
0.0 1.0 7.0
1 2 3
"""


def test_header():
    ds, zones, _ = decode_dat(FIN.encode())
    assert ds.title == "Heated fin"
    assert ds.var_names == ("X", "Y", "T")
    assert ds.num_zones == 2
    assert ds.file_type is FileType.FULL
    assert ds.aux_data == {"Solver": "demo"}
    assert ds.var_aux_data == ((2, "Units", "K"),)
    assert [z.id for z in zones] == [1, 2]


def test_block_zone():
    _, zones, blocks = decode_dat(FIN.encode())
    grid = zones[0]
    assert isinstance(grid, OrderedZone)
    assert grid.name == "grid"
    assert grid.shape == (3, 2, 1)
    assert grid.strand_id == 1
    assert grid.solution_time == 2.5
    assert grid.aux_data == {"Common.Time": "2.5"}
    assert grid.var_types == (TecDataType.F32, TecDataType.F64, TecDataType.F64)
    assert grid.var_locations[2] is ValueLocation.CELLCENTERED

    block = blocks[0]
    assert block.min_max is None
    assert block.get_min_max(0) is None
    assert block.get_data(0).kind is DataKind.F32
    assert block.get_data(1).as_f64().tolist() == [0, 0, 0, 1, 1, 1]
    assert block.get_data(2).as_f64().tolist() == [10.0, 11.0]
    assert block.get_connectivity() is None


def test_point_fe_zone():
    _, zones, blocks = decode_dat(FIN.encode())
    tri = zones[1]
    assert isinstance(tri, ClassicFEZone)
    assert tri.zone_type is ZoneType.FETRIANGLE
    assert tri.var_types == (TecDataType.F64,) * 3
    block = blocks[1]
    assert block.get_data(0).as_f64().tolist() == [0.0, 1.0, 0.0]
    assert block.get_data(2).as_f64().tolist() == [5.0, 6.0, 7.0]
    # ASCII connectivity stays 1-based
    assert block.get_connectivity().as_i32().tolist() == [1, 2, 3]


def test_defaults_and_bare_names():
    text = "VARIABLES = X Y\nZONE\n1.5 2.5\n"
    ds, zones, blocks = decode_dat(text.encode())
    assert ds.title == "Dataset"
    assert ds.var_names == ("X", "Y")
    zone = zones[0]
    assert zone.name == "Unnamed zone"
    assert zone.node_count() == 1
    assert zone.strand_id == 0
    assert zone.solution_time == 0.0
    assert zone.var_types == (TecDataType.F64, TecDataType.F64)
    assert blocks[0].get_data(1).as_f64().tolist() == [2.5]


def test_comma_and_newline_separated_data():
    text = 'VARIABLES = "A"\nZONE I=4\n1.0,2.0\n3.0e0 ,\n 4E-0\n'
    _, _, blocks = decode_dat(text.encode())
    assert blocks[0].get_data(0).as_f64().tolist() == [1.0, 2.0, 3.0, 4.0]


def test_integer_types():
    text = 'VARIABLES = "N" "M"\nZONE I=2, DT=(LONGINT SHORTINT)\n1 2\n-3 4\n'
    _, zones, blocks = decode_dat(text.encode())
    assert zones[0].var_types == (TecDataType.I32, TecDataType.I16)
    assert blocks[0].get_data(0).as_i32().tolist() == [1, 2]
    assert blocks[0].get_data(1).kind is DataKind.I16
    assert blocks[0].get_data(1).values.tolist() == [-3, 4]


def test_filetype_and_case_insensitive_values():
    text = (
        'FILETYPE = grid\nVARIABLES = "X"\n'
        "ZONE ZONETYPE=felineseg, NODES=2, ELEMENTS=1, DATAPACKING=point\n"
        "0\n1\n1 2\n"
    )
    ds, zones, blocks = decode_dat(text.encode())
    assert ds.file_type is FileType.GRID
    assert zones[0].zone_type is ZoneType.FELINESEG
    assert len(blocks[0].get_connectivity()) == 2


def test_duplicate_keyword_keeps_last():
    text = 'VARIABLES = "X"\nZONE I=5, I=2\n1 2\n'
    _, zones, _ = decode_dat(text.encode())
    assert zones[0].node_count() == 2


def test_open_file(tmp_path):
    path = tmp_path / "fin.dat"
    path.write_text(FIN, encoding="utf-8")
    dat = DatFormat.open(path)
    assert len(dat.zones) == 2
    assert dat.as_tuple()[0].title == "Heated fin"


def test_from_text_and_bom():
    dat = DatFormat.from_text("\ufeff" + FIN)
    assert dat.dataset.title == "Heated fin"


def test_varlocation_range_marks_middle_variables():
    locations = resolve_var_locations([(["2-3"], ValueLocation.CELLCENTERED)], 4)
    assert locations == [
        ValueLocation.NODAL,
        ValueLocation.CELLCENTERED,
        ValueLocation.CELLCENTERED,
        ValueLocation.NODAL,
    ]


def test_varlocation_out_of_range():
    with pytest.raises(VarLocationRangeError):
        resolve_var_locations([(["5"], ValueLocation.CELLCENTERED)], 4)
    with pytest.raises(VarLocationRangeError):
        resolve_var_locations([(["3-2"], ValueLocation.CELLCENTERED)], 4)
    with pytest.raises(NumberFormatError):
        resolve_var_locations([(["a"], ValueLocation.CELLCENTERED)], 4)


def test_varlocation_in_zone_record():
    text = (
        'VARIABLES = "A" "B" "C" "D"\n'
        "ZONE I=3, VARLOCATION=([2-3]=CELLCENTERED, [4]=NODAL)\n"
        "1 2 3\n4 5\n6 7\n8 9 10\n"
    )
    _, zones, blocks = decode_dat(text.encode())
    assert zones[0].var_locations == (
        ValueLocation.NODAL,
        ValueLocation.CELLCENTERED,
        ValueLocation.CELLCENTERED,
        ValueLocation.NODAL,
    )
    assert blocks[0].get_data(2).as_f64().tolist() == [6.0, 7.0]
    assert blocks[0].get_data(3).as_f64().tolist() == [8.0, 9.0, 10.0]


def test_parse_values():
    assert parse_values(["1", "2.5e1"], DataKind.F64).tolist() == [1.0, 25.0]
    assert parse_values(["7"], DataKind.F32).dtype == np.float32
    with pytest.raises(NumberFormatError) as exc:
        parse_values(["1", "x2"], DataKind.F64)
    assert exc.value.token == "x2"
    with pytest.raises(NumberFormatError):
        parse_values(["1.5"], DataKind.I32)
    with pytest.raises(NumberFormatError):
        parse_values(["40000"], DataKind.I16)


def test_duplicate_keyword_warning_names_the_keyword():
    messages = []
    sink_id = logger.add(messages.append, level="WARNING")
    try:
        decode_dat(b'VARIABLES = "X"\nZONE I=5, I=2\n1 2\n')
    finally:
        logger.remove(sink_id)
    assert any("keyword I given twice" in m for m in messages)
    assert not any("i_max" in m for m in messages)


def test_parse_values_accepts_special_floats():
    values = parse_values(["-1.5E+2", ".5", "nan", "-inf"], DataKind.F64)
    assert values[:2].tolist() == [-150.0, 0.5]
    assert np.isnan(values[2])
    assert np.isneginf(values[3])


def test_decoded_arrays_are_read_only():
    _, _, blocks = decode_dat(FIN.encode())
    with pytest.raises(ValueError):
        blocks[0].data[0][1].values[0] = 99
    with pytest.raises(ValueError):
        blocks[1].connectivity.values[0] = 99
