# app/core/locales.py

# Error messages
ERROR_NOT_AUTHENTICATED = "User not authenticated or session invalid."
ERROR_FORBIDDEN_CART_ITEM = "This cart item belongs to another user."
ERROR_INVALID_ITEM = "A valid item object with id and quantity is required."
ERROR_INVALID_ITEM_ID = "Item id must be a product number or start with 'pkg-' or 'build-'."
ERROR_VIRTUAL_ITEM_FIELDS = "Packages and custom builds need a name and a price."
ERROR_QUANTITY_NOT_POSITIVE = "Quantity must be positive. Use DELETE to remove."
ERROR_PRODUCT_NOT_FOUND = "Product not found."
ERROR_NOT_ENOUGH_STOCK = "Not enough stock. Available: {available_quantity} pcs."
ERROR_ITEM_NOT_IN_CART = "Item not found in cart."
ERROR_CATEGORY_REQUIRED = "A component category is required."
ERROR_UNKNOWN_CATEGORY = "Unknown component category: {category}."
ERROR_CART_EMPTY = "Cart is empty."
ERROR_STORAGE_UNAVAILABLE = "The store database is unavailable. Please try again later."
ERROR_CATALOG_UNAVAILABLE = "Failed to fetch components."
ERROR_SYNC_FAILED = "Failed to sync cart."
ERROR_BUILD_INCOMPLETE = "Select every required component before adding the build to the cart."
ERROR_CATEGORY_LOCKED = "Choose a {required} first."
ERROR_WRONG_CATEGORY = "Component '{name}' is not in category {category}."
ERROR_LOGIN_REQUIRED = "Please log in to place an order."

# Success messages
SUCCESS_CART_UPDATED = "Cart updated successfully!"
SUCCESS_QUANTITY_UPDATED = "Quantity updated!"
SUCCESS_ITEM_REMOVED_FROM_CART = "Item removed successfully."
SUCCESS_CART_CLEARED = "Cart cleared successfully."
SUCCESS_CART_SYNCED = "Cart synced successfully."
SUCCESS_CART_PARTIALLY_SYNCED = "Cart synced with errors."
SUCCESS_ITEM_ADDED = "{name} added to cart."
SUCCESS_ORDER_CREATED = "Order created successfully!"

BUILD_ITEM_NAME = "Custom PC Build"
