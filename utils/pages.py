"""Dashboard page catalog.

Maps each sector to its ordered pages and each page to the dataset it reads
and the metrics it charts.  Page titles and metric labels are English;
sector names and the UI chrome are translated through ``utils.i18n``.
"""

from dataclasses import dataclass, field
from typing import Optional

from utils.datasets import RICE_FIRST_YEAR, RICE_LAST_YEAR
from utils.errors import UnknownPageError


@dataclass(frozen=True)
class Metric:
    key: str
    label: str
    kind: str = "number"
    chart: str = "line"  # "line" | "bar"


@dataclass(frozen=True)
class Page:
    slug: str
    title: str
    dataset: str
    metrics: tuple[Metric, ...] = field(default_factory=tuple)
    methodology: bool = False


def _m(key, label, kind="number", chart="line"):
    return Metric(key, label, kind, chart)


# ── Per-dataset metric definitions ───────────────────────────────────────────

AGRIC_METRICS = {m.key: m for m in (
    _m("cereal_seeds_tons", "Cereal Seeds", "tons", "bar"),
    _m("fertilizer_tons", "Fertilizer", "tons", "bar"),
    _m("pesticide_liters", "Pesticide (liters)", "number", "bar"),
    _m("input_subsidy_budget_usd", "Input Subsidy Budget", "usd"),
    _m("credit_access_pct", "Credit Access", "pct"),
    _m("stockouts_days_per_year", "Stockout Days per Year", "number", "bar"),
    _m("fertilizer_kg_per_ha", "Fertilizer per Hectare (kg)", "decimal"),
    _m("improved_seed_use_pct", "Improved Seed Use", "pct"),
    _m("mechanization_units_per_1000_farms", "Mechanization Units per 1,000 Farms", "decimal"),
    _m("distribution_timeliness_pct", "Distribution Timeliness", "pct"),
    _m("input_price_index_2006_base", "Input Price Index (2006 = 100)", "index"),
    _m("agro_dealer_count", "Agro-dealers", "number", "bar"),
    _m("input_import_value_usd", "Input Import Value", "usd"),
    _m("local_production_inputs_tons", "Locally Produced Inputs", "tons", "bar"),
)}

LIVESTOCK_METRICS = {m.key: m for m in (
    _m("cattle_head", "Cattle (head)", "number", "bar"),
    _m("small_ruminants_head", "Small Ruminants (head)", "number", "bar"),
    _m("pigs_head", "Pigs (head)", "number", "bar"),
    _m("poultry_head", "Poultry (head)", "number", "bar"),
    _m("milk_production_tons", "Milk Production", "tons"),
    _m("meat_production_tons", "Meat Production", "tons"),
    _m("livestock_price_index_2006_base", "Livestock Price Index (2006 = 100)", "index"),
    _m("vaccination_coverage_pct", "Vaccination Coverage", "pct"),
    _m("fmd_incidents_count", "FMD Incidents", "number", "bar"),
    _m("grazing_area_ha", "Grazing Area", "ha"),
    _m("transhumance_events", "Transhumance Events", "number", "bar"),
    _m("veterinary_facilities_count", "Veterinary Facilities", "number", "bar"),
    _m("feed_imports_tons", "Feed Imports", "tons"),
    _m("local_feed_production_tons", "Local Feed Production", "tons"),
    _m("livestock_exports_tons", "Livestock Exports", "tons"),
    _m("offtake_rate_pct", "Offtake Rate", "pct"),
)}

NUTRITION_METRICS = {m.key: m for m in (
    _m("population", "Population"),
    _m("nutrition_data_quality_index", "Data Quality Index", "index"),
    _m("average_daily_caloric_intake_kcal", "Average Daily Caloric Intake", "kcal"),
    _m("protein_intake_g_per_capita_per_day", "Protein Intake per Capita per Day", "grams"),
    _m("dietary_energy_supply_kcal_per_capita_per_day", "Dietary Energy Supply per Capita", "kcal"),
    _m("fruit_vegetable_consumption_g_per_day", "Fruit & Vegetable Consumption per Day", "grams"),
    _m("animal_protein_share_of_total_protein_pct", "Animal Protein Share", "pct"),
    _m("household_food_expenditure_share_pct", "Household Food Expenditure Share", "pct"),
    _m("household_food_insecurity_pct", "Household Food Insecurity", "pct"),
    _m("child_obesity_prevalence_pct", "Child Obesity", "pct"),
    _m("maternal_mortality_ratio_per_100k", "Maternal Mortality (per 100k births)", "decimal", "bar"),
    _m("low_birth_weight_prevalence_pct", "Low Birth Weight", "pct"),
    _m("exclusive_breastfeeding_under6months_pct", "Exclusive Breastfeeding (<6 months)", "pct"),
    _m("minimum_dietary_diversity_children_pct", "Minimum Dietary Diversity (children)", "pct"),
    _m("school_meal_coverage_pct", "School Meal Coverage", "pct"),
    _m("wfp_food_assistance_beneficiaries", "WFP Food Assistance Beneficiaries", "number", "bar"),
    _m("prevalence_undernourishment_pct", "Undernourishment", "pct"),
    _m("prevalence_stunting_children_under5_pct", "Stunting (children <5)", "pct"),
    _m("prevalence_wasting_children_under5_pct", "Wasting (children <5)", "pct"),
    _m("prevalence_overweight_children_under5_pct", "Overweight (children <5)", "pct"),
    _m("adult_obesity_prevalence_pct", "Adult Obesity", "pct"),
    _m("adult_underweight_prevalence_pct", "Adult Underweight", "pct"),
    _m("iron_deficiency_women_pct", "Iron Deficiency (women)", "pct"),
    _m("prevalence_anaemia_women_pct", "Anaemia (women)", "pct"),
    _m("pregnant_women_receiving_iron_folic_acid_pct", "Pregnant Women Receiving Iron/Folic Acid", "pct"),
    _m("nutrition_budget_spending_usd_per_capita", "Nutrition Spending per Capita", "usd"),
    _m("nutrition_policy_score_index", "Nutrition Policy Score", "index"),
    _m("multisectoral_coordination_score", "Multisectoral Coordination Score", "index"),
    _m("national_nutrition_policy_implementation_pct", "Policy Implementation", "pct"),
    _m("donor_funding_for_nutrition_usd_million", "Donor Funding for Nutrition", "usd_million", "bar"),
    _m("nutrition_program_coverage_pct", "Nutrition Program Coverage", "pct"),
    _m("nutrition_surveillance_coverage_pct", "Surveillance Coverage", "pct"),
    _m("deworming_coverage_children_pct", "Deworming Coverage (children)", "pct"),
    _m("immunization_coverage_measles_pct", "Measles Immunization Coverage", "pct"),
)}

MACRO_METRICS = {m.key: m for m in (
    _m("population", "Population"),
    _m("agri_value_added_pct_gdp", "Agriculture Value Added (% of GDP)", "pct"),
    _m("gdp_usd", "GDP", "usd", "bar"),
    _m("gdp_per_capita_usd", "GDP per Capita", "usd"),
    _m("gdp_growth_pct", "GDP Growth", "pct2"),
    _m("cpi_inflation_pct", "CPI Inflation", "pct2"),
    _m("fiscal_deficit_pct_gdp", "Fiscal Deficit (% of GDP)", "pct2"),
    _m("public_debt_pct_gdp", "Public Debt (% of GDP)", "pct"),
    _m("exchange_rate_local_per_usd", "Exchange Rate (local per USD)", "index"),
    _m("unemployment_pct", "Unemployment", "pct"),
    _m("poverty_headcount_pct", "Poverty Headcount", "pct"),
    _m("exports_usd", "Exports", "usd", "bar"),
    _m("imports_usd", "Imports", "usd", "bar"),
    _m("trade_balance_usd", "Trade Balance", "usd", "bar"),
    _m("fdi_net_inflows_usd_million", "FDI Net Inflows", "usd_million"),
    _m("remittances_usd_million", "Remittances", "usd_million"),
    _m("current_account_pct_gdp", "Current Account (% of GDP)", "pct2"),
)}

RICE_METRICS = {
    "production_tonnes": _m("production_tonnes", "Rice Production", "tons", "bar"),
}

DATASET_METRICS = {
    "agric": AGRIC_METRICS,
    "livestock": LIVESTOCK_METRICS,
    "nutrition": NUTRITION_METRICS,
    "macro": MACRO_METRICS,
    "rice": RICE_METRICS,
}


def _page(slug, title, dataset, keys=(), methodology=False):
    table = DATASET_METRICS[dataset]
    return Page(slug, title, dataset, tuple(table[k] for k in keys), methodology)


_AGRIC_CORE = (
    "cereal_seeds_tons", "fertilizer_tons", "pesticide_liters",
    "input_subsidy_budget_usd", "credit_access_pct", "stockouts_days_per_year",
    "fertilizer_kg_per_ha", "improved_seed_use_pct",
    "mechanization_units_per_1000_farms",
)

CATALOG: dict[str, tuple[Page, ...]] = {
    "agric": (
        _page("overview", "Agricultural Inputs Overview", "agric", tuple(AGRIC_METRICS)),
        _page("supply", "Input Supply Chain", "agric", (
            "cereal_seeds_tons", "fertilizer_tons", "pesticide_liters",
            "stockouts_days_per_year", "distribution_timeliness_pct",
            "agro_dealer_count", "local_production_inputs_tons",
        )),
        _page("economic-indicators", "Economic Indicators", "agric", (
            "input_subsidy_budget_usd", "credit_access_pct",
            "input_price_index_2006_base", "input_import_value_usd",
        )),
        _page("adoption-mechanization", "Adoption & Mechanization", "agric", _AGRIC_CORE),
        _page("input-metric", "Input Metrics", "agric", (
            "distribution_timeliness_pct", "input_price_index_2006_base",
            "agro_dealer_count", "input_import_value_usd",
            "local_production_inputs_tons",
        )),
        _page("forecast-simulation", "Forecast & Simulation", "agric", _AGRIC_CORE),
        _page("data-methodology", "Data & Methodology", "agric",
              tuple(AGRIC_METRICS), methodology=True),
    ),
    "livestock": (
        _page("overview", "Livestock Overview", "livestock", (
            "cattle_head", "milk_production_tons", "meat_production_tons",
        )),
        _page("population", "Herd Population", "livestock", (
            "cattle_head", "small_ruminants_head", "pigs_head", "poultry_head",
        )),
        _page("production", "Production", "livestock", (
            "cattle_head", "small_ruminants_head", "pigs_head", "poultry_head",
            "milk_production_tons", "meat_production_tons",
        )),
        _page("health-welfare", "Health & Welfare", "livestock", (
            "vaccination_coverage_pct", "fmd_incidents_count",
            "veterinary_facilities_count",
        )),
        _page("grazing-transhumance", "Grazing & Transhumance", "livestock", (
            "grazing_area_ha", "transhumance_events",
        )),
        _page("economic-indicators", "Economic Indicators", "livestock", (
            "livestock_price_index_2006_base", "livestock_exports_tons",
            "offtake_rate_pct", "feed_imports_tons", "local_feed_production_tons",
        )),
        _page("forecast-simulation", "Forecast & Simulation", "livestock",
              tuple(LIVESTOCK_METRICS)),
        _page("data-methodology", "Data & Methodology", "livestock", methodology=True),
    ),
    "nutrition": (
        _page("overview", "Nutrition Overview", "nutrition", ("population",)),
        _page("malnutrition", "Malnutrition", "nutrition", (
            "prevalence_undernourishment_pct",
            "prevalence_stunting_children_under5_pct",
            "prevalence_wasting_children_under5_pct",
            "prevalence_overweight_children_under5_pct",
            "adult_obesity_prevalence_pct", "adult_underweight_prevalence_pct",
            "child_obesity_prevalence_pct",
        )),
        _page("dietary-nutrient-intake", "Dietary & Nutrient Intake", "nutrition", (
            "average_daily_caloric_intake_kcal",
            "protein_intake_g_per_capita_per_day",
            "dietary_energy_supply_kcal_per_capita_per_day",
            "fruit_vegetable_consumption_g_per_day",
            "animal_protein_share_of_total_protein_pct",
            "household_food_expenditure_share_pct",
            "household_food_insecurity_pct",
        )),
        _page("micronutrient-deficiencies", "Micronutrient Deficiencies", "nutrition", (
            "iron_deficiency_women_pct", "prevalence_anaemia_women_pct",
            "pregnant_women_receiving_iron_folic_acid_pct",
        )),
        _page("health-outcomes", "Health Outcomes", "nutrition", (
            "child_obesity_prevalence_pct", "maternal_mortality_ratio_per_100k",
            "low_birth_weight_prevalence_pct",
        )),
        _page("interventions", "Interventions", "nutrition", (
            "exclusive_breastfeeding_under6months_pct",
            "minimum_dietary_diversity_children_pct",
            "school_meal_coverage_pct", "wfp_food_assistance_beneficiaries",
        )),
        _page("program-coverage-surveillance", "Program Coverage & Surveillance", "nutrition", (
            "nutrition_program_coverage_pct", "nutrition_surveillance_coverage_pct",
            "deworming_coverage_children_pct", "immunization_coverage_measles_pct",
        )),
        _page("policy-funding", "Policy & Funding", "nutrition", (
            "nutrition_budget_spending_usd_per_capita",
            "nutrition_policy_score_index", "multisectoral_coordination_score",
            "national_nutrition_policy_implementation_pct",
            "donor_funding_for_nutrition_usd_million",
        )),
        _page("data-methodology", "Data & Methodology", "nutrition",
              ("nutrition_data_quality_index",), methodology=True),
    ),
    "macroeconomics-indices": (
        _page("overview", "Macroeconomic Overview", "macro", ("population",)),
        _page("economic-output", "Economic Output", "macro", (
            "gdp_usd", "gdp_per_capita_usd", "gdp_growth_pct",
        )),
        _page("fiscal-monetary", "Fiscal & Monetary", "macro", (
            "cpi_inflation_pct", "fiscal_deficit_pct_gdp",
            "public_debt_pct_gdp", "exchange_rate_local_per_usd",
        )),
        _page("trade-investment", "Trade & Investment", "macro", (
            "exports_usd", "imports_usd", "trade_balance_usd",
            "fdi_net_inflows_usd_million", "remittances_usd_million",
            "current_account_pct_gdp",
        )),
        _page("labor-poverty", "Labor & Poverty", "macro", (
            "population", "unemployment_pct", "poverty_headcount_pct",
        )),
        _page("agriculture", "Agriculture", "macro", ("agri_value_added_pct_gdp",)),
    ),
    "rice": (
        _page("overview", "Rice Production Overview", "rice", ("production_tonnes",)),
        _page("kpi-analysis", "Rice KPI Analysis", "rice", ("production_tonnes",)),
    ),
}

SECTORS = tuple(CATALOG)

SECTOR_TITLES = {
    "agric": "Agricultural Inputs",
    "livestock": "Livestock",
    "nutrition": "Nutrition",
    "macroeconomics-indices": "Macroeconomic Indices",
    "rice": "Rice",
}

# Fields whose year-over-year growth is charted on the agric simulation page
AGRIC_GROWTH_FIELDS = ("improved_seed_use_pct", "mechanization_units_per_1000_farms")
AGRIC_INPUT_USAGE_FIELDS = ("cereal_seeds_tons", "fertilizer_tons", "pesticide_liters")


def get_pages(sector: str) -> tuple[Page, ...]:
    try:
        return CATALOG[sector]
    except KeyError:
        raise UnknownPageError(f"Unknown sector: {sector}") from None


def get_page(sector: str, slug: Optional[str] = None) -> Page:
    """Look up a page; *slug* None or empty means the sector overview.

    Raises:
        UnknownPageError: If the sector or page is not in the catalog
    """
    pages = get_pages(sector)
    if not slug:
        return pages[0]
    for page in pages:
        if page.slug == slug:
            return page
    raise UnknownPageError(f"Unknown page: {sector}/{slug}")


def get_metric(dataset: str, key: str) -> Metric:
    try:
        return DATASET_METRICS[dataset][key]
    except KeyError:
        raise UnknownPageError(f"Unknown metric: {key}") from None


def numeric_fields(dataset: str) -> tuple[str, ...]:
    """Fields an upload for *dataset* must carry as numbers."""
    if dataset == "rice":
        return tuple(str(y) for y in range(RICE_FIRST_YEAR, RICE_LAST_YEAR + 1))
    return ("year",) + tuple(DATASET_METRICS[dataset])
