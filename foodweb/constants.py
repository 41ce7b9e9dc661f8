"""
Central configuration constants for the food web simulation.

Defines default values, vocabularies, and thresholds used across
multiple modules.
"""

# ============================================================================
# Genotype Vocabularies
# ============================================================================

KINGDOM_PLANT = 'plant'
KINGDOM_ANIMAL = 'animal'

DIET_NONE = 'none'
DIET_HERBIVORE = 'herbivore'
DIET_CARNIVORE = 'carnivore'

# Allowed diets per kingdom (checked once at load time)
KINGDOM_DIETS = {
    KINGDOM_PLANT: (DIET_NONE,),
    KINGDOM_ANIMAL: (DIET_HERBIVORE, DIET_CARNIVORE),
}


# ============================================================================
# Data Pack Layout
# ============================================================================

WORLD_FILE = "world.yaml"
GENOTYPES_FILE = "genotypes.yaml"
SETTINGS_FILE = "settings.yaml"

# Whitespace-delimited input files of the legacy format
LEGACY_WORLD_FILE = "world.txt"
LEGACY_GENOTYPES_FILE = "genotypes.txt"
LEGACY_SETTINGS_FILE = "settings.txt"


# ============================================================================
# Output Files
# ============================================================================

# Default directory for periodic state dumps (relative to working directory)
DEFAULT_OUTPUT_DIR = "output"

INITIAL_ORGANISMS_FILE = "org_initial.txt"
INITIAL_CELLS_FILE = "cell_initial.txt"
INITIAL_CENSUS_FILE = "census_initial.txt"
MEAL_MATRIX_FILE = "meal_matrix.txt"

# Per-step file name templates (step index is zero-based)
STEP_CENSUS_TEMPLATE = "step_{step}_census.txt"
STEP_ORGANISMS_TEMPLATE = "step_{step}_org.txt"
STEP_CELLS_TEMPLATE = "step_{step}_cell.txt"

OUTPUT_DELIMITER = "\t"


# ============================================================================
# Mass Balance
# ============================================================================

# Absolute tolerance for carbon conservation checks
CARBON_TOLERANCE = 1e-6


# ============================================================================
# Step Pipeline
# ============================================================================

# Phase names in execution order (keys of the per-phase timing stats)
STEP_PHASES = ('feed', 'sweep', 'breed', 'move', 'age')
