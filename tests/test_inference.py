import io

import pytest

from ravel.core.data_spec import DataSpec
from ravel.core.dimension import DimensionType
from ravel.core.exceptions import StructuralError
from ravel.core.inference import guess_from_stream, guess_separator

LONG_FORM = """country,sex,value
AU,M,1
AU,F,2
US,M,3
US,F,4
"""


@pytest.mark.parametrize(
    "lines, expected",
    [
        (["a;1", "b;2", "c;3"], ";"),
        (["a\t1", "b\t2"], "\t"),
        (["a 1", "b 2"], " "),
        (["a,1", "b 2", "c 3"], " "),
    ],
)
def test_guess_separator(lines, expected):
    assert guess_separator(lines) == expected


def test_single_numeric_column_has_no_axes():
    spec = guess_from_stream("1\n2\n3\n")
    assert spec.separator == " "
    assert (spec.n_row_axes, spec.n_col_axes, spec.header_row) == (0, 0, 0)
    assert spec.dimension_cols == set()


def test_long_form_geometry_and_names():
    spec = guess_from_stream(io.StringIO(LONG_FORM))
    assert spec.separator == ","
    assert spec.n_row_axes == 1
    assert spec.n_col_axes == 2
    assert spec.header_row == 0
    assert spec.dimension_cols == {0, 1}
    assert spec.dimension_names[:2] == ["country", "sex"]
    assert [d.type for d in spec.dimensions] == [DimensionType.string, DimensionType.string]


def test_wide_form_forces_a_header_row():
    spec = guess_from_stream("country,2019,2020\nAU,1,2\nUS,3,4\n")
    assert spec.n_row_axes == 1
    assert spec.n_col_axes == 1
    assert spec.dimension_names[0] == "country"


def test_axis_types_are_classified_from_first_data_row():
    text = "when,where,value\n2020-01-01,AU,1\n2020-01-02,US,2\n"
    spec = guess_from_stream(text)
    assert spec.n_col_axes == 2
    assert spec.dimensions[0].type is DimensionType.time
    assert spec.dimensions[1].type is DimensionType.string


def test_quarter_labels_get_quarter_units():
    spec = guess_from_stream("q,region,v\n2020-Q1,N,1\n2020-Q2,N,2\n")
    assert spec.dimensions[0].type is DimensionType.time
    assert spec.dimensions[0].units == "%Y-Q%Q"


def test_caller_settings_survive_inference():
    base = DataSpec(dec_separator=",", duplicate_key_action="sum", missing_value=0.0)
    spec = guess_from_stream(LONG_FORM, base)
    assert spec.dec_separator == ","
    assert spec.duplicate_key_action.value == "sum"
    assert spec.missing_value == 0.0


def test_metadata_line_overrides_heuristics():
    text = (
        '"RavelHypercube=[{\\"name\\":\\"year\\",\\"dimension\\":{\\"type\\":\\"value\\",\\"units\\":\\"\\"}}]"\n'
        '"year",value\n'
        '"2020",1.5\n'
    )
    spec = guess_from_stream(text)
    assert spec.columnar
    assert spec.n_row_axes == 2
    assert spec.header_row == 1
    assert spec.n_col_axes == 1
    assert spec.dimension_names == ["year"]
    assert spec.dimensions[0].type is DimensionType.value


def test_metadata_after_comment_line_shifts_geometry():
    text = (
        '"""note"""\n'
        '"RavelHypercube=[{\\"name\\":\\"k\\",\\"dimension\\":{\\"type\\":\\"string\\",\\"units\\":\\"\\"}}]"\n'
        '"k",value\n'
        '"a",1\n'
    )
    spec = guess_from_stream(text)
    assert spec.n_row_axes == 3
    assert spec.header_row == 2


def test_malformed_metadata_is_structural():
    with pytest.raises(StructuralError, match="RavelHypercube"):
        guess_from_stream('"RavelHypercube=[{oops"\n1,2\n')


def test_only_a_bounded_prefix_is_sampled():
    rows = "".join(f"r{i},{i}\n" for i in range(50))
    spec = guess_from_stream(rows + "this line; has; no; commas\n" * 500, max_rows=50)
    assert spec.separator == ","


def test_blank_lines_do_not_shift_the_header():
    plain = guess_from_stream("country,2019,2020\nAU,1,2\nUS,3,4\n")
    spec = guess_from_stream("\ncountry,2019,2020\nAU,1,2\nUS,3,4\n")
    assert (plain.n_row_axes, plain.header_row) == (1, 0)
    assert (spec.n_row_axes, spec.header_row) == (2, 1)
    assert spec.n_col_axes == 1
    assert spec.dimension_names[0] == "country"


def test_title_line_above_wide_header_is_skipped():
    spec = guess_from_stream("title,,\n\nregion,2019,2020\nAU,1,2\nUS,3,4\n")
    assert spec.header_row == 2
    assert spec.n_row_axes == 3
    assert spec.dimension_names[0] == "region"


def test_header_with_empty_tail_becomes_a_header_row():
    spec = guess_from_stream("country,sex,\nAU,M,1\nUS,F,2\n")
    assert (spec.n_row_axes, spec.n_col_axes, spec.header_row) == (1, 2, 0)
    assert spec.dimension_names[:2] == ["country", "sex"]


def test_line_without_numeric_tail_anchors_the_header_block():
    spec = guess_from_stream("Population,,\nstate,sex,count\nNSW,M,8\nVIC,M,6\n")
    assert (spec.n_row_axes, spec.n_col_axes, spec.header_row) == (2, 2, 1)
    assert spec.dimension_names[:2] == ["state", "sex"]
