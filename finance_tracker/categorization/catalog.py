from typing import Dict, List

FALLBACK_CATEGORY = "Miscellaneous"

# Category -> keywords matched per stemmed token, patterns matched as phrases.
CATEGORIES: Dict[str, Dict[str, List[str]]] = {
    "Office Supplies": {
        "keywords": ["paper", "pen", "desk", "stationery", "printer", "cartridge", "office", "supplies",
                     "toner", "ink", "folder", "notebook", "stapler", "scissors"],
        "patterns": ["office supply", "stationery", "printer ink", "paper products"],
    },
    "Travel": {
        "keywords": ["flight", "hotel", "taxi", "uber", "train", "transport", "travel", "airfare", "lodging",
                     "car rental", "fuel", "airport", "ticket", "accommodation"],
        "patterns": ["business trip", "travel expense", "hotel stay", "flight ticket"],
    },
    "Technology": {
        "keywords": ["software", "laptop", "computer", "license", "subscription", "hardware", "tech", "digital",
                     "server", "cloud", "app", "system", "network", "device"],
        "patterns": ["software license", "tech equipment", "computer hardware", "cloud service"],
    },
    "Marketing": {
        "keywords": ["advertising", "promotion", "campaign", "marketing", "ads", "social media", "seo", "content",
                     "branding", "digital", "publicity"],
        "patterns": ["marketing campaign", "ad campaign", "social media ads", "brand promotion"],
    },
    "Utilities": {
        "keywords": ["electricity", "water", "internet", "phone", "utility", "bill", "service", "telecom", "heat",
                     "gas", "power", "energy", "broadband"],
        "patterns": ["utility bill", "internet service", "phone service", "energy bill"],
    },
    "Maintenance": {
        "keywords": ["repair", "maintenance", "cleaning", "service", "fix", "facility", "upkeep", "plumbing",
                     "hvac", "equipment", "building", "property"],
        "patterns": ["building maintenance", "equipment repair", "facility service", "property upkeep"],
    },
    "Food": {
        "keywords": ["meal", "restaurant", "catering", "lunch", "dinner", "food", "grocery", "refreshment", "cafe",
                     "dining", "coffee", "snack"],
        "patterns": ["business lunch", "team dinner", "office catering", "coffee break"],
    },
    "Insurance": {
        "keywords": ["insurance", "premium", "coverage", "policy", "protection", "liability", "health",
                     "business", "property", "vehicle", "medical"],
        "patterns": ["insurance premium", "business insurance", "health coverage", "property insurance"],
    },
    "Rent": {
        "keywords": ["rent", "lease", "office space", "property", "building", "facility", "workspace", "premises",
                     "location", "space"],
        "patterns": ["office rent", "property lease", "workspace rental", "facility rent"],
    },
    "Salary": {
        "keywords": ["salary", "payroll", "compensation", "wage", "bonus", "payment", "employee", "staff", "wages",
                     "remuneration"],
        "patterns": ["employee salary", "payroll payment", "staff compensation", "bonus payment"],
    },
    "Legal": {
        "keywords": ["legal", "attorney", "lawyer", "compliance", "registration", "filing", "permit", "license",
                     "contract", "document", "patent"],
        "patterns": ["legal service", "compliance filing", "contract review", "patent filing"],
    },
}


def is_known_category(category: str) -> bool:
    return category in CATEGORIES or category == FALLBACK_CATEGORY
