"""
Integration tests for the step pipeline and run loop.

Verifies:
- Carbon conservation across full steps
- Death sweep, movement-once and ownership invariants
- The plant-only reference scenario (10 x 10 grid, 50 plants, 20 steps)
- Output files and determinism

No fixtures - uses inline helpers with explicit seeds per project conventions.
"""

import pytest

from foodweb.organism import Organism
from foodweb.simulation import FoodWebSimulation
from foodweb.constants import CARBON_TOLERANCE, STEP_PHASES
from foodweb.tests.scenario_harness import (
    DATA_ROOT, plant, herbivore, carnivore, build_simulation, all_organisms,
)


def food_web_genotypes():
    return [
        plant(gid=0),
        herbivore(gid=1),
        carnivore(gid=2),
        carnivore('wolf', gid=3, carbon_0=20.0, carbon_min=6.0, carbon_max=50.0,
                  carbon_breed=30.0, burn=0.5, big_meal=1.5, mobility=15.0),
    ]


def check_ownership(sim: FoodWebSimulation):
    """Every organism sits in exactly one list of the cell it points to"""
    seen = set()
    for cell in sim.cells:
        for organism in cell.animals:
            assert organism.genotype.is_animal
            assert organism.cell_index == cell.index
            assert id(organism) not in seen
            seen.add(id(organism))
        for organism in cell.plants:
            assert organism.genotype.is_plant
            assert organism.cell_index == cell.index
            assert id(organism) not in seen
            seen.add(id(organism))
    return len(seen)


class TestConservation:
    """Free + bound carbon is constant step to step"""

    def test_full_food_web(self):
        sim = build_simulation(
            food_web_genotypes(),
            {'grass': 800, 'rabbit': 150, 'fox': 30, 'wolf': 10},
            total_carbon=2000.0,
            seed=11
        )
        expected = sim.total_carbon()
        assert expected == pytest.approx(2000.0 + 800 * 1.0 + 150 * 4.0 + 30 * 8.0 + 10 * 20.0)

        for _ in range(30):
            sim.step()
            assert sim.total_carbon() == pytest.approx(expected, abs=CARBON_TOLERANCE)
            assert all(cell.carbon >= 0.0 for cell in sim.cells)

        print(f"[OK] 30 steps conserved {expected:.3f} carbon, "
              f"{sim.ledger.total_meals} meals")

    def test_reference_data_pack(self):
        sim = FoodWebSimulation.from_data_root(DATA_ROOT, verbose=False)
        expected = sim.total_carbon()

        for _ in range(10):
            sim.step()
            assert sim.total_carbon() == pytest.approx(expected, abs=CARBON_TOLERANCE)


class TestPipelineInvariants:
    """Death sweep, movement and aging"""

    def test_no_dead_organisms_survive_a_step(self):
        sim = build_simulation(food_web_genotypes(), {'grass': 500, 'rabbit': 100, 'fox': 30},
                               seed=3)
        for _ in range(10):
            sim.step()
            assert all(o.alive for o in all_organisms(sim))
            assert all(o.carbon > 0.0 for o in all_organisms(sim))
            check_ownership(sim)

    def test_each_animal_moves_once_per_step(self, monkeypatch):
        # No food, no breeding, no starvation: the same animals every step
        rabbit = herbivore(gid=1, spawn_prob=0.0, burn=0.0, mobility=30.0)
        sim = build_simulation([plant(gid=0), rabbit], {'rabbit': 300}, seed=5)

        calls = {}
        original_move = Organism.move

        def counting_move(self, domain, rng):
            calls[id(self)] = calls.get(id(self), 0) + 1
            original_move(self, domain, rng)

        monkeypatch.setattr(Organism, 'move', counting_move)

        for step in range(3):
            calls.clear()
            sim.step()
            animals = [a for cell in sim.cells for a in cell.animals]
            assert len(animals) == 300
            assert all(calls.get(id(a)) == 1 for a in animals), f"step {step}"
            assert sim._last_counts['relocations'] > 0
            check_ownership(sim)

    def test_plants_never_move(self):
        sim = build_simulation([plant(gid=0, spawn_prob=0.0)], {'grass': 100}, seed=8)
        before = [(o.x, o.y) for o in all_organisms(sim)]

        for _ in range(5):
            sim.step()

        assert [(o.x, o.y) for o in all_organisms(sim)] == before

    def test_ages_increment_per_step(self):
        sim = build_simulation([plant(gid=0, spawn_prob=0.0)], {'grass': 40}, seed=9)

        for _ in range(3):
            sim.step()

        assert all(o.age == 3 for o in all_organisms(sim))
        assert sim.step_count == 3

    def test_extinction_does_not_stop_run(self):
        doomed = carnivore(gid=1, burn=100.0)
        sim = build_simulation([plant(gid=0), doomed], {'fox': 20}, max_steps=15, seed=2)

        sim.run()

        assert sim.step_count == 15
        assert sim.animal_count == 0
        assert sim.census() == {'grass': 0, 'fox': 0}


class TestReferenceScenario:
    """10 x 10 grid, one plant species seeded with 50, no animals, 20 steps"""

    def build(self, output_dir=None):
        grass = plant(gid=0, carbon_0=1.0, carbon_min=0.1, carbon_max=5.0, carbon_breed=2.0,
                      burn=0.05, spawn_prob=0.1)
        rabbit = herbivore(gid=1)
        return build_simulation([grass, rabbit], {'grass': 50, 'rabbit': 0},
                                total_carbon=1000.0, max_steps=20, print_step=20,
                                output_dir=output_dir, seed=2024)

    def test_population_and_carbon(self):
        sim = self.build()
        expected = sim.total_carbon()
        assert sim.plant_count == 50
        population = sim.plant_count

        for _ in range(20):
            sim.step()
            assert sim.plant_count >= population
            population = sim.plant_count
            assert sim.total_carbon() == pytest.approx(expected, abs=CARBON_TOLERANCE)

        census = sim.census()
        assert census['rabbit'] == 0
        assert census['grass'] == sim.plant_count
        assert sim.ledger.total_meals == 0
        print(f"[OK] grass 50 -> {sim.plant_count} over 20 steps")

    def test_census_output_reports_unseeded_species(self, tmp_path):
        sim = self.build(output_dir=tmp_path)

        sim.run()

        census_file = tmp_path / "step_19_census.txt"
        assert census_file.exists()
        lines = census_file.read_text().splitlines()
        assert lines[0] == "species\tcount"
        assert "rabbit\t0" in lines
        assert any(line.startswith("grass\t") for line in lines)


class TestOutputs:
    """Run loop emission"""

    def test_run_writes_all_outputs(self, tmp_path):
        sim = build_simulation(food_web_genotypes(), {'grass': 300, 'rabbit': 60, 'fox': 10},
                               max_steps=10, print_step=5, output_dir=tmp_path, seed=4)

        ledger = sim.run()

        for name in ("org_initial.txt", "cell_initial.txt", "census_initial.txt",
                     "step_4_census.txt", "step_4_org.txt", "step_4_cell.txt",
                     "step_9_census.txt", "step_9_org.txt", "step_9_cell.txt",
                     "meal_matrix.txt"):
            assert (tmp_path / name).exists(), f"missing {name}"
        assert not (tmp_path / "step_5_census.txt").exists()

        matrix_lines = (tmp_path / "meal_matrix.txt").read_text().splitlines()
        assert matrix_lines[0] == "victim/eater\trabbit\tfox\twolf"
        assert len(matrix_lines) == 5
        fox_row = dict(zip(matrix_lines[0].split("\t")[1:], matrix_lines[3].split("\t")[1:]))
        assert fox_row['fox'] == '0'
        assert ledger is sim.ledger

        cell_lines = (tmp_path / "step_9_cell.txt").read_text().splitlines()
        assert cell_lines[0] == "x\ty\tfree_carbon\tbound_carbon\tanimals\tplants"
        assert len(cell_lines) == 1 + 100
        bound = sum(float(line.split("\t")[3]) for line in cell_lines[1:])
        assert bound == pytest.approx(sum(o.carbon for o in all_organisms(sim)))

        org_lines = (tmp_path / "step_9_org.txt").read_text().splitlines()
        assert len(org_lines) == 1 + len(all_organisms(sim))

    def test_no_output_dir_writes_nothing(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        sim = build_simulation([plant(gid=0)], {'grass': 10}, max_steps=3, print_step=1)

        sim.run()

        assert list(tmp_path.iterdir()) == []


def test_same_seed_same_run():
    runs = []
    for _ in range(2):
        sim = build_simulation(food_web_genotypes(), {'grass': 300, 'rabbit': 60, 'fox': 15},
                               seed=77)
        for _ in range(8):
            sim.step()
        runs.append((sim.census(), sim.free_carbon, sim.ledger.as_dict()))

    assert runs[0] == runs[1]


def test_unseeded_run_can_be_replayed():
    first = build_simulation(food_web_genotypes(), {'grass': 200, 'rabbit': 40}, seed=None)
    assert isinstance(first.seed, int)

    replay = build_simulation(food_web_genotypes(), {'grass': 200, 'rabbit': 40},
                              seed=first.seed)
    for _ in range(5):
        first.step()
        replay.step()

    assert first.census() == replay.census()
    assert first.free_carbon == replay.free_carbon
    print(f"[OK] Replayed unseeded run with seed={first.seed}")


def test_neighbouring_seeds_diverge():
    a = build_simulation(food_web_genotypes(), {'grass': 200, 'rabbit': 40}, seed=1)
    b = build_simulation(food_web_genotypes(), {'grass': 200, 'rabbit': 40}, seed=2)
    positions_a = [(o.x, o.y) for o in all_organisms(a)]
    positions_b = [(o.x, o.y) for o in all_organisms(b)]
    assert positions_a != positions_b


def test_snapshot_and_stats():
    sim = build_simulation(food_web_genotypes(), {'grass': 100, 'rabbit': 20}, seed=6)
    sim.step()

    snapshot = sim.get_snapshot()
    assert snapshot['step_count'] == 1
    assert len(snapshot['cells']) == 100
    assert len(snapshot['organisms']) == sim.plant_count + sim.animal_count
    assert set(snapshot['census']) == {'grass', 'rabbit', 'fox', 'wolf'}
    assert snapshot['timing']['last_step_ms'] > 0.0

    stats = sim.get_population_stats()
    assert stats.step == 1
    assert stats.total_carbon == pytest.approx(sim.total_carbon())


def test_step_stats_time_each_phase():
    sim = build_simulation(food_web_genotypes(), {'grass': 100, 'rabbit': 20}, seed=6)
    idle = sim.get_step_stats()
    assert idle['step_count'] == 0
    assert idle['mean_step_ms'] == 0.0

    for _ in range(3):
        sim.step()

    timing = sim.get_step_stats()
    assert timing['step_count'] == 3
    assert list(timing['phase_ms']) == list(STEP_PHASES)
    assert all(ms >= 0.0 for ms in timing['phase_ms'].values())
    assert timing['mean_step_ms'] == pytest.approx(sum(timing['phase_ms'].values()))
    assert timing['slowest_phase'] in STEP_PHASES

    print(f"[OK] Mean step {timing['mean_step_ms']:.3f} ms, slowest phase: {timing['slowest_phase']}")
