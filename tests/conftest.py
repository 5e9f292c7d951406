"""
Pytest fixtures for the Water Permits dashboard tests.

Raw rows use the column names of the hosted permits table (Spanish) so the
alias table is exercised end to end.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from water_permits.normalization import normalize_records


@pytest.fixture
def scenario_rows():
    """Three permits: Industrial 100, Industrial 200, Agricultural 50."""
    return [
        {"id": 1, "titular": "Alpha Foods", "uso": "Industrial", "vol_autorizado": 100,
         "depto": "Sonsonate", "municipio": "Sonsonate Centro", "plazo": 5,
         "lat": 13.66, "lon": -89.79, "estado_pozo": "Activo"},
        {"id": 2, "titular": "Beta Textiles", "uso": "Industrial", "vol_autorizado": 200,
         "depto": "La Libertad", "municipio": "La Libertad Sur", "plazo": 5,
         "lat": 13.70, "lon": -89.25, "estado_pozo": "Mantenimiento"},
        {"id": 3, "titular": "Gamma Farms", "uso": "Agricultural", "vol_autorizado": 50,
         "depto": "La Paz", "municipio": "La Paz Centro", "plazo": 10,
         "estado_pozo": "Completado"},
    ]


@pytest.fixture
def scenario_df(scenario_rows):
    return normalize_records(scenario_rows)


@pytest.fixture
def sample_rows():
    """Rows modelled on the field survey extract, including messy values."""
    return [
        {"id": 229, "titular": "TACUBAYA, S.A. DE C.V.", "uso": "Industrial",
         "vol_autorizado": "22,950", "vol_solicitado": 22950, "lat": 13.95859, "lon": -89.863454,
         "depto": "Ahuachapán", "municipio": "Ahuachapán Centro", "plazo": 5,
         "vencimiento": "2029-04-08", "estado_pozo": "Activo", "fuente": "Subterránea",
         "consumo_1": 1000, "consumo_2": 1200, "consumo_3": "n/d", "consumo_4": 900, "consumo_5": 1100},
        {"id": 420, "titular": "CARNES DE EL SALVADOR, S.A. DE C.V.", "uso": "Industrial",
         "vol_autorizado": 204000, "lat": 13.660317, "lon": -89.789493,
         "depto": "Sonsonate", "municipio": "Sonsonate Centro", "plazo": 5,
         "vencimiento": "2030-06-15", "estado_pozo": "En proceso", "fuente": "Subterránea"},
        {"id": 103, "titular": "ANDA (Pozo 4)", "uso": "Abastecimiento Público",
         "vol_autorizado": 1200000, "lat": 13.68, "lon": -89.18, "depto": "San Salvador",
         "plazo": 20, "estado_pozo": "Activo", "fuente": "Subterránea"},
        {"titular": None, "uso": "", "vol_autorizado": "not a number", "plazo": None,
         "vencimiento": "someday", "estado_pozo": None},
    ]


@pytest.fixture
def sample_df(sample_rows):
    return normalize_records(sample_rows)
