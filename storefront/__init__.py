# Storefront service
# Shopper sessions and their carts, exposed to a UI over JSON
