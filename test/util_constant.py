TEST_WEBHOOK_SECRET = 'whsec_test_secret_for_signature_checks'
TEST_FEE_PERCENT = 10
OPEN_SEATING_LABEL = '自由席'

ARTIST_EMAIL = 'artist@test.com'
OTHER_ARTIST_EMAIL = 'other_artist@test.com'
FAN_EMAIL = 'fan@test.com'
OTHER_FAN_EMAIL = 'other_fan@test.com'
NO_ADDRESS_FAN_EMAIL = 'no_address_fan@test.com'
ADMIN_EMAIL = 'admin@test.com'

EVENT_NAME = 'Spring Live'
ASSIGNED_TICKET_NAME = 'S席'
ASSIGNED_TICKET_PRICE = 8000
ASSIGNED_TICKET_CAPACITY = 10
OPEN_TICKET_NAME = '立見'
OPEN_TICKET_PRICE = 5000
OPEN_TICKET_CAPACITY = 5

PRODUCT_NAME = 'Tour T-shirt'
PRODUCT_PRICE = 1500
PRODUCT_STOCK = 10
LIMITED_PRODUCT_NAME = 'Signed Photo'
LIMITED_PRODUCT_PRICE = 2000
LIMITED_PRODUCT_LIMIT = 2
SCARCE_PRODUCT_NAME = 'Last Poster'
SCARCE_PRODUCT_PRICE = 1000
