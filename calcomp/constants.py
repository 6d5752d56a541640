from pathlib import Path

# --- Project Paths ---
ROOT_DIR = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_PATH = ROOT_DIR / "config.yaml"

# --- Sentinels ---
UNREADABLE_TITLE = "<UNREADABLE TITLE>"
UNCLASSIFIED_CATEGORY = "Unclassified"
UNREADABLE_CATEGORY = "Unreadable title"
ACADEMIC_LABEL = "Academic"
NON_ACADEMIC_LABEL = "Non-academic"
NO_PRIOR_DATA = "no prior data"
ZERO_BASELINE = "zero baseline"

# --- Match rules, in the order the classifier tries them ---
RULE_EXACT = "exact"
RULE_RANK_MODIFIER = "rank_modifier"
RULE_DEPARTMENT_SUFFIX = "department_suffix"
RULE_UNMATCHED = "unmatched"
RULE_UNREADABLE = "unreadable"

# --- Raw input columns ---
# Canonical column name -> accepted spellings (compared after lowercasing and
# dropping everything except letters and digits).
COLUMN_ALIASES = {
    "Name": ["name", "employeename", "employee", "fullname"],
    "Title": ["title", "jobtitle", "position", "positiontitle"],
    "BasePay": ["basepay", "regularpay", "base"],
    "OvertimePay": ["overtimepay", "overtime", "otpay"],
    "Benefits": ["benefits", "totalbenefits"],
    "TotalPay": ["totalpay", "grosspay"],
    "TotalPayBenefits": ["totalpaybenefits", "totalpayandbenefits", "totalcompensation"],
    "Agency": ["agency", "employer", "employername", "campus"],
    "Year": ["year", "calendaryear", "fiscalyear"],
}
REQUIRED_COLUMNS = ("Name", "Title")

# Raw column -> CompensationRecord attribute
AMOUNT_FIELDS = {
    "BasePay": "base_pay",
    "OvertimePay": "overtime_pay",
    "Benefits": "benefits",
    "TotalPay": "total_pay",
    "TotalPayBenefits": "total_pay_benefits",
}

VALUE_FIELDS = (
    "total_pay",
    "total_pay_benefits",
    "base_pay",
    "overtime_pay",
    "benefits",
    "pay_excluding_benefits",
)
GROUP_KEYS = ("category", "academic")

NAME_SUFFIXES = {"JR", "JR.", "SR", "SR.", "II", "III", "IV", "V"}

# --- Default fallback token sets for the title classifier ---
DEFAULT_RANK_MODIFIERS = (
    "ACT", "ACTING", "INTERIM", "VIS", "VISITING", "RECALL", "RECALLED",
    "EMERITUS", "EMERITA", "TEMP", "PROVISIONAL",
)
DEFAULT_GRADE_LEVELS = ("I", "II", "III", "IV", "V")
DEFAULT_DEPARTMENT_SUFFIXES = (
    "AY", "FY", "HCOMP", "B/E/E", "1/9", "1/10",
    "WOS", "(WOS)", "MED", "LAW", "VM", "SFT", "EXEC", "NONEXEMPT", "EX",
)

ACADEMIC_TRUE = {"true", "t", "yes", "y", "1", "academic"}
ACADEMIC_FALSE = {"false", "f", "no", "n", "0", "non-academic", "nonacademic", "non academic", ""}
