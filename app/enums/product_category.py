from enum import Enum

class ProductCategory(str, Enum):
    handicrafts = "handicrafts"
    paintings = "paintings"
    decor = "decor"
    jewelry = "jewelry"
    furniture = "furniture"
    other = "other"
