import numpy as np
import pytest
from amrdata.errors import RatioMismatchError
from amrdata.geometry.amr.box import Box
from amrdata.geometry.amr.overlap import Transformation, calculate_overlaps
from amrdata.data.quantity import Quantity, QtyCentering, HybridQuantity, hybrid_quantity
from amrdata.data.field.field_data import FieldData, FieldDataFactory, FIELD_DTYPE
from amrdata.meshes.hierarchy import Patch

RHO = hybrid_quantity("rho", HybridQuantity.rho, 1)
BX = hybrid_quantity("Bx", HybridQuantity.Bx, 1)

@pytest.fixture
def neighbors():
    """two adjacent 1D density fields, 2 ghost cells each"""
    a = FieldData(Box([0], [9]), Box([-2], [11]), RHO)
    b = FieldData(Box([10], [19]), Box([8], [21]), RHO)
    a.field[:] = np.arange(a.field.size, dtype=float)
    return a, b

def test_allocation_shape():
    dual = FieldData(Box([0], [9]), Box([-2], [11]), RHO)
    primal = FieldData(Box([0], [9]), Box([-2], [11]), BX)
    assert dual.field.shape == (14,)
    assert primal.field.shape == (15,)
    assert np.all(dual.field == 0.0)
    assert dual.interior().shape == (10,)

def test_factory_ghost_box_is_grown_box():
    patch = Patch(Box([0, 0], [7, 3]), ghost_width=2, ghost_widths={"Ex": 1})
    rho = FieldDataFactory(hybrid_quantity("rho", HybridQuantity.rho, 2)).allocate(patch, time=1.5)
    ex = FieldDataFactory(hybrid_quantity("Ex", HybridQuantity.Ex, 2)).allocate(patch)

    assert rho.get_ghost_box() == patch.box.grow(2)
    assert rho.get_time() == 1.5
    assert ex.get_ghost_box() == Box([-1, -1], [8, 4])
    # Ex is dual along x, primal along y
    assert ex.field.shape == (10, 7)

def test_rejects_particle_quantity():
    with pytest.raises(ValueError):
        FieldData(Box([0], [9]), Box([-2], [11]), Quantity.particles("protons", 1))

def test_copy_into_neighbor_interior(neighbors):
    a, b = neighbors
    [overlap] = calculate_overlaps(a.geometry, b.geometry, fill_box=b.get_box())
    b.copy(a, overlap)

    # cells 10 and 11 of A sit at indices 12 and 13 of its buffer
    np.testing.assert_array_equal(b.view(Box([10], [11])), [12.0, 13.0])
    assert np.all(b.view(Box([12], [21])) == 0.0)
    assert np.all(b.view(Box([8], [9])) == 0.0)

def test_periodic_copy():
    a = FieldData(Box([0], [9]), Box([-2], [11]), RHO)
    b = FieldData(Box([10], [19]), Box([8], [21]), RHO)
    a.view(Box([0], [1]))[:] = [7.0, 8.0]

    shifts = [np.array([20]), np.array([-20])]
    overlaps = calculate_overlaps(a.geometry, b.geometry, shifts=shifts, fill_box=b.get_ghost_box())
    for overlap in overlaps:
        b.copy(a, overlap)

    # cells 0 and 1 of A are the periodic images of cells 20 and 21 of B
    np.testing.assert_array_equal(b.view(Box([20], [21])), [7.0, 8.0])

def test_copy_rejects_non_unit_ratio(neighbors):
    a, b = neighbors
    overlap = b.geometry.calculate_overlap(a.geometry, Transformation([0], 2))
    with pytest.raises(RatioMismatchError):
        b.copy(a, overlap)

def test_copy_rejects_other_centering():
    a = FieldData(Box([0], [9]), Box([-2], [11]), BX)
    b = FieldData(Box([0], [9]), Box([-2], [11]), RHO)
    with pytest.raises(ValueError):
        b.copy_all(a)

def test_copy_all(neighbors):
    a, b = neighbors
    b.copy_all(a)
    np.testing.assert_array_equal(b.view(Box([8], [11])), [10.0, 11.0, 12.0, 13.0])

def test_pack_unpack_bitwise():
    field = FieldData(Box([0, 0], [4, 3]), Box([-1, -1], [5, 4]), hybrid_quantity("rho", HybridQuantity.rho, 2))
    rng = np.random.default_rng(12)
    field.field[:] = rng.normal(size=field.field.shape)
    region = Box([1, 0], [3, 2])

    stream = field.pack(region)
    assert len(stream) == region.size * FIELD_DTYPE.itemsize == field.data_stream_size(region)

    other = FieldData(Box([0, 0], [4, 3]), Box([-1, -1], [5, 4]), field.quantity)
    other.unpack(stream, region)
    assert other.view(region).tobytes() == field.view(region).tobytes()
    assert np.all(other.view(Box([4, 0], [5, 4])) == 0.0)

def test_pack_empty_region():
    field = FieldData(Box([0], [9]), Box([-2], [11]), RHO)
    assert field.pack(Box.empty(1)) == b''

def test_unpack_wrong_size():
    field = FieldData(Box([0], [9]), Box([-2], [11]), RHO)
    with pytest.raises(ValueError):
        field.unpack(b'\x00' * 8, Box([0], [1]))

def test_region_outside_buffer():
    field = FieldData(Box([0], [9]), Box([-2], [11]), RHO)
    with pytest.raises(ValueError):
        field.pack(Box([10], [12]))

def test_stream_between_neighbors(neighbors):
    """pack_stream on the source side feeds unpack_stream on the destination side"""
    a, b = neighbors
    [overlap] = calculate_overlaps(a.geometry, b.geometry, fill_box=b.get_box())
    b.unpack_stream(a.pack_stream(overlap), overlap)
    np.testing.assert_array_equal(b.view(Box([10], [11])), [12.0, 13.0])

def test_time(neighbors):
    a, _ = neighbors
    assert a.get_time() == 0.0
    a.set_time(0.25)
    assert a.get_time() == 0.25

def test_fill():
    field = FieldData(Box([0], [9]), Box([-2], [11]), RHO)
    field.fill(2.5)
    assert np.all(field.field == 2.5)
    assert np.all(field.interior() == 2.5)
