import struct
import numpy as np
import pytest
from amrdata.errors import RatioMismatchError
from amrdata.geometry.amr.box import Box
from amrdata.geometry.amr.overlap import Overlap, Transformation, calculate_overlaps
from amrdata.data.quantity import Quantity
from amrdata.data.particles.particle_array import ParticleArray, particle_dtype, make_particles
from amrdata.data.particles.particles_data import ParticlesData, SIZE_COUNT

PROTONS_1D = Quantity.particles("protons", 1)

@pytest.fixture
def neighbors():
    """
    A: box [0,9], ghost box [-2,11], particles in cells 8, 9 and 10
    B: box [10,19], ghost box [8,21], empty
    """
    a = ParticlesData(Box([0], [9]), Box([-2], [11]), PROTONS_1D)
    b = ParticlesData(Box([10], [19]), Box([8], [21]), PROTONS_1D)
    a.add(make_particles(1, [8, 9, 10], weight=[1.0, 2.0, 3.0]))
    return a, b

def test_particle_dtype():
    dtype = particle_dtype(3)
    assert dtype['icell'].shape == (3,)
    assert dtype['v'].shape == (3,)
    assert dtype.itemsize == 8 + 8 + 3 * 4 + 3 * 4 + 3 * 8
    with pytest.raises(ValueError):
        particle_dtype(4)

def test_particle_array_growth_and_order():
    array = ParticleArray(2)
    for i in range(5):
        array.push_back(1.0, 1.0, [i, 0], [0.5, 0.5], [float(i), 0.0, 0.0])
    assert len(array) == 5
    assert array.capacity >= 5
    np.testing.assert_array_equal(array.icell[:, 0], [0, 1, 2, 3, 4])

    removed = array.remove(array.icell[:, 0] % 2 == 1)
    np.testing.assert_array_equal(removed['icell'][:, 0], [1, 3])
    np.testing.assert_array_equal(array.icell[:, 0], [0, 2, 4])

def test_particle_array_rejects_other_dimension():
    with pytest.raises(TypeError):
        ParticleArray(1).append(make_particles(2, [[0, 0]]))

def test_add_dispatches_interior_and_ghost(neighbors):
    a, _ = neighbors
    np.testing.assert_array_equal(a.domain_particles.icell[:, 0], [8, 9])
    np.testing.assert_array_equal(a.ghost_particles.icell[:, 0], [10])
    assert len(a) == 3

def test_add_outside_ghost_box(neighbors):
    a, _ = neighbors
    with pytest.raises(ValueError):
        a.add(make_particles(1, [12]))

def test_copy_into_neighbor_interior(neighbors):
    """only the particle in cell 10 lands in B's interior"""
    a, b = neighbors
    [overlap] = calculate_overlaps(a.geometry, b.geometry, fill_box=b.get_box())
    b.copy(a, overlap)

    assert len(b.domain_particles) == 1
    assert len(b.ghost_particles) == 0
    assert b.domain_particles[0]['icell'][0] == 10
    assert b.domain_particles[0]['weight'] == 3.0

def test_copy_into_neighbor_ghosts(neighbors):
    a, b = neighbors
    [overlap] = calculate_overlaps(a.geometry, b.geometry)
    b.copy(a, overlap)

    np.testing.assert_array_equal(b.ghost_particles.icell[:, 0], [8, 9])
    np.testing.assert_array_equal(b.domain_particles.icell[:, 0], [10])

def test_copy_appends(neighbors):
    a, b = neighbors
    [overlap] = calculate_overlaps(a.geometry, b.geometry, fill_box=b.get_box())
    b.copy(a, overlap)
    b.copy(a, overlap)
    assert len(b.domain_particles) == 2

    b.clear()
    assert len(b) == 0

def test_periodic_copy_shifts_cells():
    a = ParticlesData(Box([0], [9]), Box([-2], [11]), PROTONS_1D)
    b = ParticlesData(Box([10], [19]), Box([8], [21]), PROTONS_1D)
    a.add(make_particles(1, [0, 1, 5]))

    overlaps = calculate_overlaps(a.geometry, b.geometry, shifts=[np.array([20])], fill_box=b.get_ghost_box())
    for overlap in overlaps:
        b.copy(a, overlap)

    np.testing.assert_array_equal(b.ghost_particles.icell[:, 0], [20, 21])
    assert len(b.domain_particles) == 0

def test_copy_rejects_non_unit_ratio(neighbors):
    a, b = neighbors
    region = Box([10], [11])
    with pytest.raises(RatioMismatchError):
        b.copy(a, Overlap(region, region, Transformation([0], 2)))

def test_partition():
    data = ParticlesData(Box([0], [9]), Box([-2], [11]), PROTONS_1D)
    data.add(make_particles(1, [0, 5, 9]))

    # particles moved: 0 -> -5 leaves, 9 -> 10 becomes a ghost
    icell = data.domain_particles.records['icell']
    icell[0, 0] = -5
    icell[2, 0] = 10

    leaving = data.partition()
    np.testing.assert_array_equal(leaving['icell'][:, 0], [-5])
    np.testing.assert_array_equal(data.domain_particles.icell[:, 0], [5])
    np.testing.assert_array_equal(data.ghost_particles.icell[:, 0], [10])

    assert np.all(data.get_box().contains_points(data.domain_particles.icell))
    ghosts = data.ghost_particles.icell
    assert np.all(data.get_ghost_box().contains_points(ghosts))
    assert not np.any(data.get_box().contains_points(ghosts))

def test_pack_unpack(neighbors):
    a, _ = neighbors
    region = Box([9], [11])
    stream = a.pack(region)

    [count] = struct.unpack("<i", stream[:SIZE_COUNT])
    assert count == 2
    assert len(stream) == SIZE_COUNT + 2 * particle_dtype(1).itemsize

    other = ParticlesData(Box([0], [9]), Box([-2], [11]), PROTONS_1D)
    other.unpack(stream, region)
    np.testing.assert_array_equal(other.domain_particles.icell[:, 0], [9])
    np.testing.assert_array_equal(other.ghost_particles.icell[:, 0], [10])
    assert other.domain_particles.records.tobytes() == a.domain_particles.records[1:].tobytes()

def test_pack_empty_region(neighbors):
    a, _ = neighbors
    stream = a.pack(Box([-2], [-1]))
    assert stream == struct.pack("<i", 0)

def test_unpack_malformed(neighbors):
    a, _ = neighbors
    with pytest.raises(ValueError):
        a.unpack(b'\x01', Box([0], [9]))
    with pytest.raises(ValueError):
        a.unpack(struct.pack("<i", 3), Box([0], [9]))

def test_unpack_outside_region(neighbors):
    a, _ = neighbors
    stream = a.pack(Box([8], [9]))
    with pytest.raises(ValueError):
        a.unpack(stream, Box([0], [3]))

def test_stream_between_neighbors(neighbors):
    a, b = neighbors
    [overlap] = calculate_overlaps(a.geometry, b.geometry, fill_box=b.get_box())
    b.unpack_stream(a.pack_stream(overlap), overlap)
    np.testing.assert_array_equal(b.domain_particles.icell[:, 0], [10])

def test_copy_single_cell_region(neighbors):
    a, b = neighbors
    region = Box([10], [10])
    b.copy(a, Overlap(region, region, Transformation.identity(1)))
    assert len(b.domain_particles) == 1
    assert b.domain_particles[0]['icell'][0] == 10
    assert len(b.ghost_particles) == 0
