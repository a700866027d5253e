from goryl.common.logging_setup import get_logger

logger = get_logger("goryl.finance")

FINANCE_CSV_HEADER = ['Seller Name', 'Email', 'Account Type', 'Total Products', 'Products Sold', 'Total Orders',
                      'Total Revenue', 'Total Earnings', 'Total Payments Received', 'Payments Count',
                      'Pending Withdrawals', 'Available Balance', 'Held Amount', 'Total Withdrawn', 'Last Payment Date']
