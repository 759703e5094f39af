"""
TLD Registry - the fixed list of top-level suffixes accepted for whitelist
and blacklist entries.

Entries are plain lowercase labels without the leading dot. Only the last
label of a domain is checked against this list, so ``sub.example.co.uk``
is accepted through ``uk``.
"""

# ============================================================================
# GENERIC TLDs (gTLDs)
# ============================================================================
GENERIC_TLDS = [
    "com", "org", "net", "edu", "gov", "mil", "int",
    "info", "biz", "name", "mobi",
]

# ============================================================================
# POPULAR SHORT ccTLDs used generically
# ============================================================================
VANITY_TLDS = [
    "co", "io", "ly", "me", "tv", "ws", "cc",
]

# ============================================================================
# AMERICAS
# ============================================================================
AMERICAS_TLDS = [
    "us", "ca", "mx", "br", "cl",
]

# ============================================================================
# EUROPE
# ============================================================================
EUROPE_TLDS = [
    "uk", "de", "fr", "ru", "ch", "it", "nl", "se", "no", "es", "be",
    "pl", "gr", "cz", "pt", "hu", "dk", "fi", "ro", "hr", "bg", "sk",
    "si", "lt", "lv", "ee", "is", "mt", "lu", "cy", "md", "mc", "sm",
    "va", "ad", "li", "al", "ba", "rs", "mk", "xk", "by", "ua",
]

# ============================================================================
# CAUCASUS & CENTRAL ASIA
# ============================================================================
CIS_TLDS = [
    "am", "az", "ge", "kz", "kg", "tj", "tm", "uz", "mn",
]

# ============================================================================
# MIDDLE EAST & AFRICA
# ============================================================================
MEA_TLDS = [
    "tr", "il", "za",
]

# ============================================================================
# ASIA PACIFIC
# ============================================================================
ASIA_PACIFIC_TLDS = [
    "jp", "au", "in", "tw", "th", "af", "bd", "bt", "bn", "kh", "cn",
    "hk", "id", "kr", "la", "mo", "mm", "np", "pk", "ph", "sg", "lk",
    "tl", "vn",
]

# ============================================================================
# COMBINE ALL TLDs
# ============================================================================
DEFAULT_TLDS = (
    GENERIC_TLDS +
    VANITY_TLDS +
    AMERICAS_TLDS +
    EUROPE_TLDS +
    CIS_TLDS +
    MEA_TLDS +
    ASIA_PACIFIC_TLDS
)
