"""
Known T-Soft endpoint paths, in the order they are tried.

Deployments expose different subsets of these; the lists are probe orders,
not a guarantee that any particular path exists.
"""

# Products
PRODUCTS_LEGACY = ("/product/getProducts", "/product/get", "/products/get")
PRODUCTS_JSON = ("/catalog/products", "/api/v3/catalog/products")

PRODUCT_BY_CODE_LEGACY = ("/product/getProduct", "/product/getProductByCode", "/product/get")
PRODUCT_BY_CODE_JSON = ("/catalog/products/{code}", "/products/{code}")

PRODUCT_VARIANTS_LEGACY = ("/product/get", "/product/getProduct", "/product/getProductDetail", "/product/detail")
PRODUCT_VARIANTS_JSON = ("/catalog/products/{code}", "/api/v3/catalog/products/{code}", "/products/{code}")

PRODUCT_ADD_LEGACY = ("/product/addProduct", "/product/add", "/products/create")
PRODUCT_ADD_JSON = ("/catalog/products", "/api/v3/catalog/products", "/products")

PRODUCT_UPDATE = "/product/updateProduct"
PRODUCT_DELETE = "/product/deleteProduct"
PRODUCT_STOCK = "/product/updateStock"
PRODUCT_IMAGES = "/product/getProductImages"

VARIANT_STOCK_LEGACY = ("/product/updateVariantStock", "/product/updateStock", "/stock/update")

# Categories
CATEGORIES_LEGACY = ("/category/getCategories", "/category/get", "/categories/get")
CATEGORIES_JSON = ("/catalog/categories", "/api/v3/catalog/categories", "/categories")
CATEGORY_TREE = "/category/getCategoryTree"

# Customers
CUSTOMERS_LEGACY = ("/customer/getCustomers", "/customer/get", "/customers/get")
CUSTOMERS_JSON = ("/customers", "/api/v3/customers")
CUSTOMER_BY_ID_LEGACY = ("/customer/getCustomerById", "/customer/get", "/customers/get")

# Orders
ORDERS_LEGACY = ("/order/getOrders", "/order/get", "/orders/get")
ORDERS_JSON = ("/orders", "/api/v3/orders")

ORDER_DETAILS_ORDER2 = (
    "/order2/getOrderDetailsByOrderId/{order_id}",
    "/order2/getOrderDetails/{order_id}",
    "/order2/getOrderDetailsByOrderId",
    "/order2/getOrderDetails",
)
ORDER_DETAILS_LEGACY = (
    "/order/getOrderDetailsByOrderId",
    "/order/getOrderDetails",
    "/order/details",
    "/orders/details",
    "/orderdetails/get",
)
ORDER_DETAILS_JSON = (
    "/orders/{order_id}/details",
    "/api/v3/orders/{order_id}/details",
    "/order/{order_id}/items",
)

ORDER_DETAILS_BY_CODE_ORDER2 = (
    "/order2/getOrderDetailsByOrderCode/{order_code}",
    "/order2/getOrderDetailsByOrderCode",
)
ORDER_DETAILS_BY_CODE_LEGACY = ("/order/getOrderDetailsByOrderCode", "/order/getDetails")

# Lookups
PAYMENT_TYPES_LEGACY = ("/order/getPaymentTypeList", "/payment/getTypes", "/paymenttype/get")
CARGO_COMPANIES_LEGACY = ("/order/getCargoCompanyList", "/cargo/getCompanies", "/cargocompany/get")
ORDER_STATUSES_LEGACY = ("/order/getOrderStatusList", "/orderstatus/get", "/order/statuses")
