import numpy as np
import pytest

from ravel.core.exceptions import CircularDefinition, InvalidExpression, UnresolvedReference
from ravel.core.init_expr import parse_init
from ravel.core.resolver import generate, init_value
from ravel.core.variables import Group, VariableValue, VariableValues, scope_for


@pytest.mark.parametrize(
    "text, coef, name",
    [
        ("", 1.0, ""),
        ("2.5", 2.5, ""),
        ("-x", -1.0, "x"),
        ("1*Y", 1.0, "Y"),
        ("0.5 :rate", 0.5, ":rate"),
        ("3e2*total cost", 300.0, "total cost"),
    ],
)
def test_parse_init(text, coef, name):
    expr = parse_init(text)
    assert expr.coef == coef
    assert expr.name == name
    assert not expr.is_generator


def test_parse_init_generator_call():
    expr = parse_init("2*eye(3, 3)")
    assert expr.is_generator
    assert expr.function == "eye"
    assert expr.dims == (3, 3)
    assert expr.coef == 2.0


@pytest.mark.parametrize("text", ["iota(3", "1..2", "(x)"])
def test_malformed_init_is_invalid_expression(text):
    with pytest.raises(InvalidExpression, match="Malformed initial value"):
        parse_init(text)


def test_generator_dimensions_must_be_positive():
    with pytest.raises(InvalidExpression, match="must be positive"):
        parse_init("iota(0)")


def test_eye_has_ones_on_the_diagonal():
    tensor = generate("eye", (3, 3))
    assert tensor.hypercube.dims() == [3, 3]
    expected = np.zeros(9)
    expected[[0, 4, 8]] = 1.0
    np.testing.assert_array_equal(tensor.data, expected)


def test_iota_one_zero():
    np.testing.assert_array_equal(generate("iota", (2, 2)).data, [0.0, 1.0, 2.0, 3.0])
    np.testing.assert_array_equal(generate("one", (3,)).data, [1.0, 1.0, 1.0])
    np.testing.assert_array_equal(generate("zero", (2,)).data, [0.0, 0.0])


def test_rand_uses_supplied_generator():
    a = generate("rand", (5,), np.random.default_rng(7)).data
    b = generate("rand", (5,), np.random.default_rng(7)).data
    np.testing.assert_array_equal(a, b)
    assert np.all((a >= 0.0) & (a < 1.0))


def test_unknown_generator_is_invalid_expression():
    with pytest.raises(InvalidExpression, match="Unsupported generator function"):
        generate("spline", (3,))


def _values(*variables: VariableValue) -> VariableValues:
    values = VariableValues()
    for variable in variables:
        values.add(variable)
    return values


def test_scalar_and_generator_coefficients():
    s = VariableValue("s", init="2.5")
    g = VariableValue("g", init="2*iota(4)")
    values = _values(s, g)

    np.testing.assert_array_equal(init_value(s, values).data, [2.5])
    np.testing.assert_array_equal(init_value(g, values).data, [0.0, 2.0, 4.0, 6.0])


def test_reference_is_scaled_by_coefficient():
    base = VariableValue("base", init="iota(3)")
    derived = VariableValue("derived", init="-2*base")
    values = _values(base, derived)

    np.testing.assert_array_equal(init_value(derived, values).data, [0.0, -2.0, -4.0])


def test_literal_tensor_wins_over_expression():
    base = VariableValue("base", init="iota(3)")
    values = _values(base)
    base.set_tensor_init(generate("one", (2,)))

    np.testing.assert_array_equal(init_value(base, values).data, [1.0, 1.0])


def test_mutual_references_are_circular():
    x = VariableValue("X", init="1*Y")
    y = VariableValue("Y", init="1*X")
    values = _values(x, y)

    with pytest.raises(CircularDefinition, match="circular definition"):
        init_value(x, values)


def test_self_reference_is_circular():
    x = VariableValue("X", init="X")
    with pytest.raises(CircularDefinition):
        init_value(x, _values(x))


def test_unknown_reference():
    x = VariableValue("X", init="2*nothing")
    with pytest.raises(UnresolvedReference, match="Unknown variable/function nothing"):
        init_value(x, _values(x))


def test_scoped_names_resolve_through_enclosing_groups():
    outer = Group("outer")
    inner = Group("inner", outer)
    global_rate = VariableValue("rate", scope=outer, init="2")
    local_rate = VariableValue("rate", scope=inner, init="5")
    uses_outer = VariableValue("x", scope=inner, init="3*:rate")
    uses_local = VariableValue("y", scope=inner, init="rate")
    values = _values(global_rate, local_rate, uses_outer, uses_local)

    assert global_rate.value_id == ":rate"
    assert local_rate.value_id == f"{inner.id}:rate"
    assert scope_for(inner, ":rate") is outer
    np.testing.assert_array_equal(init_value(uses_outer, values).data, [6.0])
    np.testing.assert_array_equal(init_value(uses_local, values).data, [5.0])


def test_colon_name_without_declaring_group_is_global():
    outer = Group("outer")
    inner = Group("inner", outer)
    deeper = Group("deeper", inner)
    top = VariableValue("k", init="4")
    user = VariableValue("z", scope=deeper, init=":k")
    values = _values(top, user)

    assert scope_for(deeper, ":k") is None
    np.testing.assert_array_equal(init_value(user, values).data, [4.0])
