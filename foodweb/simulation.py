"""
Food web simulation kernel.

Main simulation class that owns the cell grid, the shared random source and
the food web ledger, and advances the world one step at a time:
feed + photosynthesis -> death sweep -> breeding -> movement -> aging,
with periodic state emission.
"""

import numpy as np
import time
from typing import Dict, List, Optional
from pathlib import Path

from .cell import Cell
from .data_types import DataPack, Genotype, StepStats
from .domain import SpatialDomain
from .ledger import FoodWebLedger
from .breeding import breed
from .loader import load_all_data, load_legacy_data
from .rng import fresh_seed, make_generator
from .spawning import create_cells, seed_organisms
from .writers import (
    count_species,
    write_organisms,
    write_cells,
    write_census,
    write_meal_matrix,
)
from .constants import (
    STEP_PHASES,
    INITIAL_ORGANISMS_FILE,
    INITIAL_CELLS_FILE,
    INITIAL_CENSUS_FILE,
    MEAL_MATRIX_FILE,
    STEP_CENSUS_TEMPLATE,
    STEP_ORGANISMS_TEMPLATE,
    STEP_CELLS_TEMPLATE,
)


class FoodWebSimulation:
    """
    Main simulation class for the food web.

    Every phase of a step is applied to all cells before the next phase
    begins. Cells own their organisms; the only cross-cell mutation is the
    relocation of animals at the end of the movement phase.
    """

    def __init__(
        self,
        data: DataPack,
        seed: Optional[int] = None,
        output_dir: Optional[Path] = None,
        verbose: bool = True
    ):
        """
        Initialize simulation from a loaded data pack.

        Args:
            data: World, genotypes, initial populations and settings
            seed: Optional run seed (overrides settings.seed)
            output_dir: Directory for state files (None = no files written)
            verbose: Print progress to console
        """
        self.data = data
        self.settings = data.settings
        self.genotypes: List[Genotype] = data.genotypes
        self.verbose = verbose

        self.seed = seed if seed is not None else self.settings.seed
        if self.seed is None:
            self.seed = fresh_seed()
            self._log(f"[WARN] No seed configured, drew seed={self.seed} (pass --seed to replay)")
        self.rng: np.random.Generator = make_generator(self.seed)

        self.output_dir: Optional[Path] = Path(output_dir) if output_dir is not None else None

        # Simulation state
        self.domain = SpatialDomain.from_config(data.world)
        self.ledger = FoodWebLedger(self.genotypes)
        self.step_count: int = 0

        # Per-step counters (last completed step)
        self._last_counts: Dict[str, int] = {
            'meals': 0, 'deaths': 0, 'births': 0, 'relocations': 0,
        }

        # Cumulative wall time per pipeline phase (seconds)
        self._phase_seconds: Dict[str, float] = {phase: 0.0 for phase in STEP_PHASES}
        self._last_step_seconds: float = 0.0

        self.cells: List[Cell] = create_cells(self.domain, self.settings.total_carbon)
        self._log(f"[OK] Created {len(self.cells)} cells ({self.domain.nx} x {self.domain.ny})")

        seeded = seed_organisms(self.cells, self.genotypes, data.populations, self.domain, self.rng)
        self._log(f"[OK] Seeded {seeded} organisms across {len(self.genotypes)} genotypes, "
                  f"seed={self.seed}")

    @classmethod
    def from_data_root(
        cls,
        data_root: Path,
        legacy: bool = False,
        seed: Optional[int] = None,
        output_dir: Optional[Path] = None,
        verbose: bool = True
    ) -> 'FoodWebSimulation':
        """
        Load a data pack from disk and build the simulation.

        Args:
            data_root: Data pack directory
            legacy: Read world.txt/genotypes.txt/settings.txt instead of YAML
            seed, output_dir, verbose: See __init__
        """
        if verbose:
            print(f"Loading data pack from {data_root}...")
        data = load_legacy_data(data_root) if legacy else load_all_data(data_root)
        return cls(data, seed=seed, output_dir=output_dir, verbose=verbose)

    def _log(self, message: str):
        if self.verbose:
            print(message)

    # ------------------------------------------------------------------
    # Step pipeline
    # ------------------------------------------------------------------

    def step(self):
        """
        Advance the world by one step.

        Phase order is fixed:
            1. Feeding, then photosynthesis, per cell
            2. Death sweep
            3. Breeding (animals, then plants, per cell)
            4. Movement and cross-cell relocation (animals only)
            5. Aging
        """
        marks = [time.perf_counter()]

        meals = self._feed_and_grow()
        marks.append(time.perf_counter())
        deaths = self._remove_dead()
        marks.append(time.perf_counter())
        births = self._breed_all()
        marks.append(time.perf_counter())
        relocations = self._move_animals()
        marks.append(time.perf_counter())
        self._age_all()
        marks.append(time.perf_counter())

        self.step_count += 1
        self._last_counts = {
            'meals': meals, 'deaths': deaths, 'births': births, 'relocations': relocations,
        }
        for phase, t0, t1 in zip(STEP_PHASES, marks, marks[1:]):
            self._phase_seconds[phase] += t1 - t0
        self._last_step_seconds = marks[-1] - marks[0]

    def _feed_and_grow(self) -> int:
        """
        Phase 1: animals feed, then plants photosynthesize, cell by cell.

        Returns:
            Meals eaten across all cells
        """
        meals = 0
        for cell in self.cells:
            meals += cell.feed(self.ledger, self.rng)
            cell.photosynthesis(self.rng)
        return meals

    def _remove_dead(self) -> int:
        """Phase 2: sweep organisms marked dead out of every cell"""
        return sum(cell.remove_dead() for cell in self.cells)

    def _breed_all(self) -> int:
        """
        Phase 3: bud animals, then plants, within each cell.

        Returns:
            Number of daughters created
        """
        births = 0
        for cell in self.cells:
            n_before = cell.population
            cell.animals = breed(cell.animals, self.domain, self.rng)
            cell.plants = breed(cell.plants, self.domain, self.rng)
            births += cell.population - n_before
        return births

    def _move_animals(self) -> int:
        """
        Phase 4: move each animal once and relocate cell-crossers.

        Moved flags are cleared for every animal first. An animal relocated
        into a cell that has not been visited yet keeps its flag, so it is
        not moved a second time.

        Returns:
            Number of animals relocated to a different cell
        """
        for cell in self.cells:
            for animal in cell.animals:
                animal.moved = False

        relocations = 0
        for cell in self.cells:
            staying = []
            leaving = []
            for animal in cell.animals:
                if animal.moved:
                    staying.append(animal)
                    continue

                origin = animal.cell_index
                animal.move(self.domain, self.rng)
                if animal.cell_index != origin:
                    leaving.append(animal)
                else:
                    staying.append(animal)

            cell.animals = staying
            for animal in leaving:
                self.cells[animal.cell_index].animals.append(animal)
            relocations += len(leaving)

        return relocations

    def _age_all(self):
        """Phase 5: every surviving organism ages by one step"""
        for cell in self.cells:
            for organism in cell.animals:
                organism.age += 1
            for organism in cell.plants:
                organism.age += 1

    # ------------------------------------------------------------------
    # Run loop and emission
    # ------------------------------------------------------------------

    def run(self, max_steps: Optional[int] = None) -> FoodWebLedger:
        """
        Run the full simulation.

        Writes initial state, emits state every print_step steps, and writes
        the meal matrix once at the end. Extinction does not stop the run.

        Args:
            max_steps: Optional override for settings.max_steps

        Returns:
            The accumulated food web ledger
        """
        n_steps = max_steps if max_steps is not None else self.settings.max_steps
        print_step = self.settings.print_step

        self.emit_initial()

        for istep in range(n_steps):
            self.step()

            if (istep + 1) % print_step == 0:
                self.emit_step(istep)
                if self.verbose:
                    self.print_step_summary()

        self.emit_meal_matrix()
        self._log("Done.")
        return self.ledger

    def _ensure_output_dir(self) -> bool:
        if self.output_dir is None:
            return False
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return True

    def emit_initial(self):
        """Write organisms, cells and census before the first step"""
        self.update_bound()
        if not self._ensure_output_dir():
            return
        write_organisms(self.cells, self.output_dir / INITIAL_ORGANISMS_FILE)
        write_cells(self.cells, self.output_dir / INITIAL_CELLS_FILE)
        write_census(self.cells, self.genotypes, self.output_dir / INITIAL_CENSUS_FILE)

    def emit_step(self, istep: int):
        """
        Write census, organisms and cells for a (zero-based) step index.

        Bound carbon is refreshed first so cell summaries are current.
        """
        self.update_bound()
        if not self._ensure_output_dir():
            return
        write_census(self.cells, self.genotypes,
                     self.output_dir / STEP_CENSUS_TEMPLATE.format(step=istep))
        write_organisms(self.cells, self.output_dir / STEP_ORGANISMS_TEMPLATE.format(step=istep))
        write_cells(self.cells, self.output_dir / STEP_CELLS_TEMPLATE.format(step=istep))

    def emit_meal_matrix(self):
        """Write the accumulated victim x eater matrix"""
        if not self._ensure_output_dir():
            return
        write_meal_matrix(self.ledger, self.output_dir / MEAL_MATRIX_FILE)

    # ------------------------------------------------------------------
    # State queries
    # ------------------------------------------------------------------

    def update_bound(self) -> float:
        """Refresh bound carbon in every cell and return the total"""
        return sum(cell.update_bound() for cell in self.cells)

    @property
    def free_carbon(self) -> float:
        return sum(cell.carbon for cell in self.cells)

    def total_carbon(self) -> float:
        """Free plus bound carbon across the whole grid"""
        return self.free_carbon + self.update_bound()

    def census(self) -> Dict[str, int]:
        """Living count per species (extinct species report 0)"""
        return count_species(self.cells, self.genotypes)

    @property
    def plant_count(self) -> int:
        return sum(len(cell.plants) for cell in self.cells)

    @property
    def animal_count(self) -> int:
        return sum(len(cell.animals) for cell in self.cells)

    def get_population_stats(self) -> StepStats:
        """
        Summarize populations and carbon after the last completed step.

        Returns:
            StepStats with counts, carbon totals and last-step event counters
        """
        bound = self.update_bound()
        return StepStats(
            step=self.step_count,
            plants=self.plant_count,
            animals=self.animal_count,
            free_carbon=self.free_carbon,
            bound_carbon=bound,
            census=self.census(),
            **self._last_counts
        )

    def get_step_stats(self) -> dict:
        """
        Get wall-time statistics for the step pipeline.

        Returns:
            Dict with step_count, last_step_ms, mean_step_ms, phase_ms (mean
            milliseconds per step for each phase) and slowest_phase
        """
        steps = max(self.step_count, 1)
        phase_ms = {phase: seconds * 1000.0 / steps
                    for phase, seconds in self._phase_seconds.items()}

        return {
            'step_count': self.step_count,
            'last_step_ms': self._last_step_seconds * 1000.0,
            'mean_step_ms': sum(phase_ms.values()),
            'phase_ms': phase_ms,
            'slowest_phase': max(phase_ms, key=phase_ms.get)
        }

    def get_snapshot(self) -> dict:
        """
        Get complete simulation state snapshot.

        Returns:
            Dict with step_count, cells, organisms, census, ledger, timing
        """
        self.update_bound()
        organisms = []
        for cell in self.cells:
            organisms.extend(o.to_dict() for o in cell.plants)
            organisms.extend(o.to_dict() for o in cell.animals)

        return {
            'step_count': self.step_count,
            'cells': [cell.to_dict() for cell in self.cells],
            'organisms': organisms,
            'census': self.census(),
            'meal_matrix': self.ledger.as_dict(),
            'timing': self.get_step_stats()
        }

    def print_step_summary(self):
        """Print step summary to console (lightweight monitoring)"""
        stats = self.get_population_stats()
        timing = self.get_step_stats()
        print(f"Step {stats.step:5d} | "
              f"Plants: {stats.plants:6d} | "
              f"Animals: {stats.animals:6d} | "
              f"Free C: {stats.free_carbon:10.3f} | "
              f"Bound C: {stats.bound_carbon:10.3f} | "
              f"Meals: {stats.meals:4d} | "
              f"Avg: {timing['mean_step_ms']:6.3f} ms ({timing['slowest_phase']} slowest)")
