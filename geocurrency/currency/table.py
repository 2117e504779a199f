"""Static country/currency reference data.

Everything here is pure: no I/O, no mutable module state. Rates are rough
units-per-USD figures used only when every live quote source is down.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional


BASE_CURRENCY = "usd"


@dataclass(frozen=True)
class CurrencyInfo:
    code: str
    name: str
    symbol: str
    decimals: int
    approx_rate: float  # units of this currency per 1 USD


@dataclass(frozen=True)
class CountryCurrency:
    currency_code: str
    symbol: str
    approx_rate: float


def _c(code: str, name: str, symbol: str, decimals: int, rate: float) -> CurrencyInfo:
    return CurrencyInfo(code, name, symbol, decimals, rate)


CURRENCIES: Dict[str, CurrencyInfo] = {
    c.code: c
    for c in (
        # Major
        _c("usd", "US Dollar", "$", 2, 1.0),
        _c("eur", "Euro", "€", 2, 0.85),
        _c("gbp", "British Pound", "£", 2, 0.73),
        _c("cad", "Canadian Dollar", "C$", 2, 1.35),
        _c("aud", "Australian Dollar", "A$", 2, 1.50),
        _c("nzd", "New Zealand Dollar", "NZ$", 2, 1.65),
        _c("jpy", "Japanese Yen", "¥", 0, 110.0),
        _c("chf", "Swiss Franc", "Fr", 2, 0.92),
        _c("sek", "Swedish Krona", "kr", 2, 8.5),
        _c("nok", "Norwegian Krone", "kr", 2, 8.8),
        _c("dkk", "Danish Krone", "kr", 2, 6.3),
        _c("pln", "Polish Zloty", "zł", 2, 4.0),
        _c("czk", "Czech Koruna", "Kč", 2, 23.0),
        _c("huf", "Hungarian Forint", "Ft", 2, 360.0),
        _c("ron", "Romanian Leu", "lei", 2, 4.6),
        _c("bgn", "Bulgarian Lev", "лв", 2, 1.8),
        _c("try", "Turkish Lira", "₺", 2, 30.0),
        _c("rub", "Russian Ruble", "₽", 2, 90.0),
        # Africa
        _c("ngn", "Nigerian Naira", "₦", 2, 1530.0),
        _c("ghs", "Ghanaian Cedi", "₵", 2, 12.0),
        _c("kes", "Kenyan Shilling", "KSh", 2, 108.0),
        _c("zar", "South African Rand", "R", 2, 18.5),
        _c("ugx", "Ugandan Shilling", "USh", 0, 3700.0),
        _c("tzs", "Tanzanian Shilling", "TSh", 2, 2300.0),
        _c("rwf", "Rwandan Franc", "FRw", 0, 1000.0),
        _c("zmw", "Zambian Kwacha", "ZK", 2, 18.0),
        _c("bwp", "Botswana Pula", "P", 2, 11.0),
        _c("mur", "Mauritian Rupee", "₨", 2, 44.0),
        _c("egp", "Egyptian Pound", "E£", 2, 31.0),
        _c("mad", "Moroccan Dirham", "MAD", 2, 10.0),
        _c("dzd", "Algerian Dinar", "DA", 2, 135.0),
        _c("tnd", "Tunisian Dinar", "TD", 3, 3.1),
        _c("lyd", "Libyan Dinar", "LD", 3, 4.8),
        _c("xaf", "Central African CFA Franc", "FCFA", 0, 585.0),
        _c("xof", "West African CFA Franc", "CFA", 0, 585.0),
        _c("etb", "Ethiopian Birr", "Br", 2, 55.0),
        _c("aoa", "Angolan Kwanza", "Kz", 2, 830.0),
        _c("mzn", "Mozambican Metical", "MT", 2, 64.0),
        _c("sll", "Sierra Leonean Leone", "Le", 2, 13000.0),
        _c("lrd", "Liberian Dollar", "L$", 2, 155.0),
        _c("gnf", "Guinean Franc", "FG", 0, 8600.0),
        _c("cdf", "Congolese Franc", "FC", 2, 2000.0),
        _c("mga", "Malagasy Ariary", "Ar", 0, 4500.0),
        _c("kmf", "Comorian Franc", "CF", 0, 415.0),
        _c("djf", "Djiboutian Franc", "Fdj", 0, 178.0),
        _c("sos", "Somali Shilling", "Sh", 2, 570.0),
        _c("stn", "São Tomé and Príncipe Dobra", "Db", 2, 22.0),
        _c("cve", "Cape Verdean Escudo", "$", 2, 98.0),
        _c("gmd", "Gambian Dalasi", "D", 2, 54.0),
        _c("mwk", "Malawian Kwacha", "MK", 2, 1700.0),
        _c("nad", "Namibian Dollar", "N$", 2, 18.5),
        _c("szl", "Swazi Lilangeni", "E", 2, 18.5),
        _c("lsl", "Lesotho Loti", "M", 2, 18.5),
        _c("mru", "Mauritanian Ouguiya", "UM", 2, 40.0),
        _c("scr", "Seychellois Rupee", "SR", 2, 13.5),
        _c("bif", "Burundian Franc", "FBu", 0, 2850.0),
        _c("ern", "Eritrean Nakfa", "Nfk", 2, 15.0),
        _c("sdg", "Sudanese Pound", "SDG", 2, 600.0),
        _c("ssp", "South Sudanese Pound", "SSP", 2, 1000.0),
        # Asia / Middle East
        _c("inr", "Indian Rupee", "₹", 2, 83.0),
        _c("cny", "Chinese Yuan", "¥", 2, 7.2),
        _c("krw", "South Korean Won", "₩", 0, 1320.0),
        _c("sgd", "Singapore Dollar", "S$", 2, 1.35),
        _c("hkd", "Hong Kong Dollar", "HK$", 2, 7.8),
        _c("myr", "Malaysian Ringgit", "RM", 2, 4.7),
        _c("thb", "Thai Baht", "฿", 2, 35.0),
        _c("php", "Philippine Peso", "₱", 2, 56.0),
        _c("idr", "Indonesian Rupiah", "Rp", 0, 15000.0),
        _c("vnd", "Vietnamese Dong", "₫", 0, 24000.0),
        _c("pkr", "Pakistani Rupee", "₨", 2, 280.0),
        _c("bdt", "Bangladeshi Taka", "৳", 2, 110.0),
        _c("lkr", "Sri Lankan Rupee", "₨", 2, 300.0),
        _c("aed", "UAE Dirham", "د.إ", 2, 3.67),
        _c("sar", "Saudi Riyal", "﷼", 2, 3.75),
        _c("ils", "Israeli New Shekel", "₪", 2, 3.7),
        # Americas
        _c("brl", "Brazilian Real", "R$", 2, 5.0),
        _c("mxn", "Mexican Peso", "$", 2, 17.0),
        _c("ars", "Argentine Peso", "$", 2, 850.0),
        _c("clp", "Chilean Peso", "$", 0, 900.0),
        _c("cop", "Colombian Peso", "$", 2, 3900.0),
        _c("pen", "Peruvian Sol", "S/", 2, 3.7),
    )
}

_EUROZONE = (
    "de", "fr", "it", "es", "nl", "be", "at", "pt", "ie", "fi", "gr",
    "lu", "sk", "si", "ee", "lv", "lt", "cy", "mt", "hr",
)

COUNTRY_CURRENCY: Dict[str, str] = {
    "us": "usd", "ca": "cad", "gb": "gbp", "au": "aud", "nz": "nzd",
    "jp": "jpy", "ch": "chf", "se": "sek", "no": "nok", "dk": "dkk",
    "pl": "pln", "cz": "czk", "hu": "huf", "ro": "ron", "bg": "bgn",
    "tr": "try", "ru": "rub",
    "cn": "cny", "in": "inr", "kr": "krw", "sg": "sgd", "hk": "hkd",
    "th": "thb", "ph": "php", "my": "myr", "id": "idr", "vn": "vnd",
    "pk": "pkr", "bd": "bdt", "lk": "lkr", "ae": "aed", "sa": "sar",
    "il": "ils",
    "br": "brl", "mx": "mxn", "ar": "ars", "cl": "clp", "co": "cop",
    "pe": "pen",
    "ng": "ngn", "gh": "ghs", "ke": "kes", "za": "zar", "ug": "ugx",
    "tz": "tzs", "rw": "rwf", "eg": "egp", "ma": "mad", "dz": "dzd",
    "tn": "tnd", "ly": "lyd", "et": "etb", "zm": "zmw", "bw": "bwp",
    "mu": "mur", "ao": "aoa", "mz": "mzn", "dj": "djf", "so": "sos",
    "st": "stn", "cv": "cve", "gm": "gmd", "lr": "lrd", "sl": "sll",
    "gn": "gnf", "mw": "mwk", "na": "nad", "sz": "szl", "ls": "lsl",
    "cd": "cdf", "mg": "mga", "km": "kmf", "mr": "mru", "sc": "scr",
    "bi": "bif", "er": "ern", "sd": "sdg", "ss": "ssp", "zw": "usd",
    "cm": "xaf", "td": "xaf", "cf": "xaf", "cg": "xaf", "ga": "xaf",
    "gq": "xaf",
    "ci": "xof", "sn": "xof", "ml": "xof", "bf": "xof", "ne": "xof",
    "bj": "xof", "tg": "xof", "gw": "xof",
    **{cc: "eur" for cc in _EUROZONE},
}

AFRICAN_COUNTRIES: FrozenSet[str] = frozenset({
    "dz", "ao", "bj", "bw", "bf", "bi", "cv", "cm", "cf", "td", "km",
    "cd", "cg", "ci", "dj", "eg", "gq", "er", "sz", "et", "ga", "gm",
    "gh", "gn", "gw", "ke", "ls", "lr", "ly", "mg", "mw", "ml", "mr",
    "mu", "ma", "mz", "na", "ne", "ng", "rw", "st", "sn", "sc", "sl",
    "so", "za", "ss", "sd", "tz", "tg", "tn", "ug", "zm", "zw",
})

COUNTRY_NAMES: Dict[str, str] = {
    "us": "United States", "ca": "Canada", "gb": "United Kingdom",
    "au": "Australia", "nz": "New Zealand", "de": "Germany", "fr": "France",
    "it": "Italy", "es": "Spain", "nl": "Netherlands", "be": "Belgium",
    "ch": "Switzerland", "se": "Sweden", "no": "Norway", "dk": "Denmark",
    "fi": "Finland", "ie": "Ireland", "at": "Austria", "pt": "Portugal",
    "pl": "Poland", "cz": "Czech Republic", "hu": "Hungary", "sk": "Slovakia",
    "si": "Slovenia", "hr": "Croatia", "bg": "Bulgaria", "ro": "Romania",
    "gr": "Greece", "cy": "Cyprus", "mt": "Malta", "lu": "Luxembourg",
    "ee": "Estonia", "lv": "Latvia", "lt": "Lithuania", "tr": "Turkey",
    "ru": "Russia", "jp": "Japan", "kr": "South Korea", "cn": "China",
    "in": "India", "sg": "Singapore", "hk": "Hong Kong", "th": "Thailand",
    "ph": "Philippines", "my": "Malaysia", "id": "Indonesia", "vn": "Vietnam",
    "pk": "Pakistan", "bd": "Bangladesh", "lk": "Sri Lanka",
    "ae": "United Arab Emirates", "sa": "Saudi Arabia", "il": "Israel",
    "br": "Brazil", "mx": "Mexico", "ar": "Argentina", "cl": "Chile",
    "co": "Colombia", "pe": "Peru", "ve": "Venezuela",
    "dz": "Algeria", "ao": "Angola", "bj": "Benin", "bw": "Botswana",
    "bf": "Burkina Faso", "bi": "Burundi", "cv": "Cape Verde",
    "cm": "Cameroon", "cf": "Central African Republic", "td": "Chad",
    "km": "Comoros", "cd": "DR Congo", "cg": "Congo", "ci": "Côte d'Ivoire",
    "dj": "Djibouti", "eg": "Egypt", "gq": "Equatorial Guinea",
    "er": "Eritrea", "sz": "Eswatini", "et": "Ethiopia", "ga": "Gabon",
    "gm": "Gambia", "gh": "Ghana", "gn": "Guinea", "gw": "Guinea-Bissau",
    "ke": "Kenya", "ls": "Lesotho", "lr": "Liberia", "ly": "Libya",
    "mg": "Madagascar", "mw": "Malawi", "ml": "Mali", "mr": "Mauritania",
    "mu": "Mauritius", "ma": "Morocco", "mz": "Mozambique", "na": "Namibia",
    "ne": "Niger", "ng": "Nigeria", "rw": "Rwanda",
    "st": "São Tomé and Príncipe", "sn": "Senegal", "sc": "Seychelles",
    "sl": "Sierra Leone", "so": "Somalia", "za": "South Africa",
    "ss": "South Sudan", "sd": "Sudan", "tz": "Tanzania", "tg": "Togo",
    "tn": "Tunisia", "ug": "Uganda", "zm": "Zambia", "zw": "Zimbabwe",
}

DEFAULT_CURRENCY = CURRENCIES[BASE_CURRENCY]


def _norm(code: Optional[str]) -> str:
    return (code or "").strip().lower()


def lookup(country_code: Optional[str]) -> CountryCurrency:
    """Currency for a country; unknown countries get USD/$/1.0."""
    currency = currency_info(COUNTRY_CURRENCY.get(_norm(country_code), BASE_CURRENCY))
    if currency is None:
        currency = DEFAULT_CURRENCY
    return CountryCurrency(currency.code, currency.symbol, currency.approx_rate)


def currency_for(country_code: Optional[str]) -> str:
    return lookup(country_code).currency_code


def currency_info(currency_code: Optional[str]) -> Optional[CurrencyInfo]:
    return CURRENCIES.get(_norm(currency_code))


def symbol_for(currency_code: Optional[str]) -> str:
    """Symbol keyed by currency, independent of any country.

    Unknown currencies are shown by their upper-cased code.
    """
    info = currency_info(currency_code)
    if info is not None:
        return info.symbol
    return _norm(currency_code).upper() or DEFAULT_CURRENCY.symbol


def approx_rate(currency_code: Optional[str]) -> float:
    """Static units-per-USD; 1.0 for currencies we know nothing about."""
    info = currency_info(currency_code)
    return info.approx_rate if info is not None else 1.0


def is_african(country_code: Optional[str]) -> bool:
    return _norm(country_code) in AFRICAN_COUNTRIES


def gateway_for(country_code: Optional[str]) -> str:
    return "paystack" if is_african(country_code) else "stripe"


def country_name(country_code: Optional[str]) -> str:
    code = _norm(country_code)
    return COUNTRY_NAMES.get(code, code.upper() or "Unknown")


def flag_for(country_code: Optional[str]) -> str:
    """Regional-indicator emoji for a two-letter code, or a globe."""
    code = _norm(country_code)
    if len(code) != 2 or not code.isalpha() or not code.isascii():
        return "🌍"
    return "".join(chr(ord(ch) - ord("a") + 0x1F1E6) for ch in code)


def format_amount(amount: float, currency_code: str) -> str:
    info = currency_info(currency_code)
    if info is None:
        return f"{_norm(currency_code).upper()} {amount:,.2f}"
    return f"{info.symbol}{amount:,.{info.decimals}f}"
