"""Repository provisioning from the configured input workbook."""

from typing import Annotated

from fastapi import Depends

from material_cost_engine.config import Settings, get_settings
from material_cost_engine.domain.repositories import RepositoryBundle
from material_cost_engine.repositories.excel_repositories import ExcelRepositoryFactory


def get_repositories(
    settings: Annotated[Settings, Depends(get_settings)],
) -> RepositoryBundle:
    """Dependency loading every repository from ``settings.paths.input_file``."""
    return ExcelRepositoryFactory.from_file(settings.paths.input_file)
