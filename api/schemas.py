from __future__ import annotations

from typing import List, Optional, Tuple

from pydantic import BaseModel, Field


class FilterCriteriaModel(BaseModel):
    search_term: str = ""
    strain_type: str = "all"
    effects: List[str] = Field(default_factory=list)
    flavors: List[str] = Field(default_factory=list)
    thc_range: Tuple[float, float] = (0.0, 35.0)
    stock_filter: str = "all"


class SortCriteriaModel(BaseModel):
    sort_by: str = "recent"
    sort_order: str = "desc"


class BrowseRequestModel(BaseModel):
    filters: FilterCriteriaModel = Field(default_factory=FilterCriteriaModel)
    sort: SortCriteriaModel = Field(default_factory=SortCriteriaModel)


class ThcBatchRequestModel(BaseModel):
    names: List[str] = Field(default_factory=list)


class ThcViewResponse(BaseModel):
    name: str
    range: Tuple[float, float]
    low: float
    high: float
    average: float
    display: str


class PrintConfigModel(BaseModel):
    include_thc: bool = True
    include_effects: bool = True
    include_flavors: bool = True
    include_terpenes: bool = False
    include_description: bool = True
    include_pricing: bool = True
    include_stock_status: bool = False
    menu_title: str = "Today's Cannabis Menu"
    menu_columns: int = 2
    group_by: str = "tier"
    sort_by: str = "alphabetical"
    menu_width: str = "standard"
    menu_footer: str = "All prices are per ounce. Taxes not included."
    show_header: bool = True
    show_footer: bool = True
    compact_mode: bool = False
    default_filename: str = "{StrainName}-{Date}"
    ascii_table_style: str = "bordered"


class ExportRequestModel(BaseModel):
    strain_name: Optional[str] = None
    config: PrintConfigModel = Field(default_factory=PrintConfigModel)
