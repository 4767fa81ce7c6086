# Static product catalog keyed by category. Prices are whole Naira.

CATALOG = {
    "vegetables": [
        {
            "id": 1,
            "name": "Organic Tomatoes",
            "description": "Vine-ripened tomatoes grown without synthetic pesticides.",
            "price": 7500,
            "unit": "per kg",
            "stock": 120,
            "low_stock_threshold": 20,
            "reorder_point": 40,
            "rating": 4.8,
            "image": "/images/products/tomatoes.jpg",
            "bulk_pricing": [
                {"min_quantity": 10, "price_per_unit": 6500},
                {"min_quantity": 50, "price_per_unit": 6000},
            ],
        },
        {
            "id": 2,
            "name": "Fresh Spinach",
            "description": "Tender leaves harvested the morning of dispatch.",
            "price": 2500,
            "unit": "per bunch",
            "stock": 80,
            "low_stock_threshold": 15,
            "reorder_point": 30,
            "rating": 4.6,
            "image": "/images/products/spinach.jpg",
            "bulk_pricing": [
                {"min_quantity": 20, "price_per_unit": 2100},
                {"min_quantity": 100, "price_per_unit": 1900},
            ],
        },
        {
            "id": 3,
            "name": "Bell Peppers",
            "description": "Mixed red, yellow and green peppers.",
            "price": 4000,
            "unit": "per kg",
            "stock": 60,
            "low_stock_threshold": 10,
            "reorder_point": 25,
            "rating": 4.5,
            "image": "/images/products/peppers.jpg",
            "bulk_pricing": [
                {"min_quantity": 15, "price_per_unit": 3500},
            ],
        },
    ],
    "grains": [
        {
            "id": 10,
            "name": "Local Rice",
            "description": "Destoned Ofada rice, 50kg bag.",
            "price": 85000,
            "unit": "per bag",
            "stock": 40,
            "low_stock_threshold": 8,
            "reorder_point": 15,
            "rating": 4.7,
            "image": "/images/products/rice.jpg",
            "bulk_pricing": [
                {"min_quantity": 5, "price_per_unit": 80000},
                {"min_quantity": 20, "price_per_unit": 76000},
            ],
        },
        {
            "id": 11,
            "name": "Yellow Maize",
            "description": "Sun-dried maize for milling or feed.",
            "price": 45000,
            "unit": "per bag",
            "stock": 55,
            "low_stock_threshold": 10,
            "reorder_point": 20,
            "rating": 4.4,
            "image": "/images/products/maize.jpg",
            "bulk_pricing": [
                {"min_quantity": 10, "price_per_unit": 42000},
            ],
        },
    ],
    "tubers": [
        {
            "id": 20,
            "name": "Yam Tubers",
            "description": "Large Abuja yams.",
            "price": 3500,
            "unit": "per tuber",
            "stock": 200,
            "low_stock_threshold": 30,
            "reorder_point": 60,
            "rating": 4.6,
            "image": "/images/products/yam.jpg",
            "bulk_pricing": [
                {"min_quantity": 50, "price_per_unit": 3000},
                {"min_quantity": 200, "price_per_unit": 2700},
            ],
        },
        {
            "id": 21,
            "name": "Cassava",
            "description": "Freshly uprooted cassava for garri or fufu.",
            "price": 1500,
            "unit": "per kg",
            "stock": 0,
            "low_stock_threshold": 50,
            "reorder_point": 100,
            "rating": 4.2,
            "image": "/images/products/cassava.jpg",
            "bulk_pricing": [],
        },
    ],
    "poultry": [
        {
            "id": 30,
            "name": "Farm Fresh Eggs",
            "description": "Crate of 30 eggs from free-range layers.",
            "price": 5500,
            "unit": "per crate",
            "stock": 150,
            "low_stock_threshold": 25,
            "reorder_point": 50,
            "rating": 4.9,
            "image": "/images/products/eggs.jpg",
            "bulk_pricing": [
                {"min_quantity": 10, "price_per_unit": 5000},
                {"min_quantity": 50, "price_per_unit": 4700},
            ],
        },
        {
            "id": 31,
            "name": "Dressed Broiler Chicken",
            "description": "Whole chicken, cleaned and frozen.",
            "price": 9000,
            "unit": "per bird",
            "stock": 35,
            "low_stock_threshold": 10,
            "reorder_point": 20,
            "rating": 4.7,
            "image": "/images/products/chicken.jpg",
            "bulk_pricing": [
                {"min_quantity": 10, "price_per_unit": 8200},
            ],
        },
    ],
}
