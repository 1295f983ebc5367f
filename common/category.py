"""
Keyword based product category detection.
"""

from typing import Dict, List, Optional

CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    "Clothing": [
        "shirt", "dress", "jacket", "coat", "sweater", "blouse", "top", "pants", "jeans", "skirt", "suit",
        "hoodie", "cardigan", "vest", "shorts", "leggings", "romper", "jumpsuit", "blazer", "denim", "tee",
        "t-shirt", "tank", "crop", "tunic", "pant", "trouser", "chino", "jogger", "sweatshirt", "sweatpant",
        "polo", "henley", "thermal", "pajama", "robe", "kimono", "caftan", "poncho", "cape", "shawl", "wrap",
    ],
    "Shoes": [
        "shoe", "sneaker", "boot", "sandal", "heel", "loafer", "flat", "pump", "slipper", "oxford", "mule",
        "wedge", "espadrille", "clog", "platform", "stiletto", "ankle boot", "knee high", "thigh high",
        "chelsea", "combat", "hiking", "running", "trainer", "slip-on", "mary jane", "ballerina", "mocassin",
    ],
    "Bags": [
        "bag", "purse", "backpack", "tote", "clutch", "wallet", "satchel", "crossbody", "messenger", "pouch",
        "handbag", "hobo", "bucket", "shoulder bag", "duffle", "weekender", "briefcase", "wristlet",
        "card holder", "coin purse", "fanny pack", "belt bag", "saddle bag", "shopper", "carryall",
    ],
    "Accessories": [
        "belt", "scarf", "hat", "cap", "gloves", "sunglasses", "watch", "tie", "beanie", "headband", "bandana",
        "visor", "beret", "fedora", "panama", "bucket hat", "baseball cap", "mittens", "earmuffs", "umbrella",
        "keychain", "hair clip", "hair tie", "scrunchie", "headwrap", "turban",
    ],
    "Jewelry": [
        "necklace", "ring", "bracelet", "earring", "pendant", "chain", "brooch", "anklet", "charm", "jewel",
        "diamond", "gold", "silver", "pearl", "gemstone", "stud", "hoop", "drop earring", "choker", "locket",
        "cuff", "bangle", "beads", "jewelry set", "body jewelry", "toe ring", "nose ring", "piercing",
    ],
}

# A hit on one of these decides the category outright
PRIORITY_KEYWORDS: Dict[str, List[str]] = {
    "Clothing": [
        "dress", "shirt", "jacket", "coat", "sweater", "blouse", "top", "pants", "jeans", "skirt", "suit",
        "hoodie", "blazer",
    ],
    "Shoes": ["shoe", "sneaker", "boot", "sandal", "heel", "loafer", "flat", "pump"],
    "Bags": ["bag", "purse", "backpack", "tote", "clutch", "wallet", "handbag"],
    "Jewelry": ["necklace", "ring", "bracelet", "earring", "pendant", "chain"],
}

BRAND_CATEGORIES: Dict[str, str] = {
    "nike": "Shoes",
    "adidas": "Shoes",
    "puma": "Shoes",
    "reebok": "Shoes",
    "converse": "Shoes",
    "vans": "Shoes",
    "new balance": "Shoes",
    "asics": "Shoes",
    "saucony": "Shoes",
    "under armour": "Shoes",
    "coach": "Bags",
    "michael kors": "Bags",
    "kate spade": "Bags",
    "louis vuitton": "Bags",
    "gucci": "Bags",
    "prada": "Bags",
    "chanel": "Bags",
    "hermes": "Bags",
    "celine": "Bags",
    "fendi": "Bags",
    "tiffany": "Jewelry",
    "cartier": "Jewelry",
    "pandora": "Jewelry",
    "swarovski": "Jewelry",
    "bulgari": "Jewelry",
    "van cleef": "Jewelry",
}

DEFAULT_CATEGORY = "Other"
BRAND_WEIGHT = 1.5


class CategoryDetector:
    """Maps product text to one of a fixed set of category labels."""

    def __init__(self, keywords=None, priority=None, brands=None, default=DEFAULT_CATEGORY):
        self.keywords = keywords if keywords is not None else CATEGORY_KEYWORDS
        self.priority = priority if priority is not None else PRIORITY_KEYWORDS
        self.brands = brands if brands is not None else BRAND_CATEGORIES
        self.default = default

    def detect(self, name: str = "", description: str = "", brand: str = "", hint: Optional[str] = None) -> str:
        name = name or ""
        description = description or ""
        brand = brand or ""

        # 1. A site supplied category wins when it maps onto ours
        if hint:
            hint_lower = hint.lower()
            for category, words in self.keywords.items():
                if category.lower() in hint_lower or any(word in hint_lower for word in words):
                    return category

        search_text = f"{name} {description}".lower()
        name_lower = name.lower()

        # 2. Priority keywords
        for category, words in self.priority.items():
            if any(word in search_text for word in words):
                return category

        # 3. Weighted keyword scoring, name hits count double
        scores: Dict[str, float] = {}
        for category, words in self.keywords.items():
            score = 0
            for word in words:
                if word in search_text:
                    score += 2 if word in name_lower else 1
            if score:
                scores[category] = score

        # 4. Brand leanings
        brand_lower = brand.lower()
        for brand_key, category in self.brands.items():
            if brand_key in brand_lower:
                scores[category] = scores.get(category, 0) + BRAND_WEIGHT

        if not scores:
            return self.default

        # Ties go to the category scored last
        best_category, best_score = None, None
        for category, score in scores.items():
            if best_score is None or score >= best_score:
                best_category, best_score = category, score
        return best_category
