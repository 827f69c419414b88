"""Namespaced keys shared by every process."""

COUNTDOWN = "countdown"
REWARD_COUNTDOWN = "rewardCountdown"
DETECTION_CONTROL = "detectionControl"
ADMIN_CONFIG = "adminConfig"
BACKEND_TRANSACTIONS = "backendTransactions"
FRONTEND_TRANSACTIONS = "backendTransactionsFrontend"
LARGE_TRANSACTION_NOTIFICATIONS = "largeTransactionNotifications"
SUCCESS_ADDRESSES = "successAddresses"
HOLDERS_DATA = "holdersData"
HOLDERS_SNAPSHOTS = "holdersSnapshots"
TRANSACTION_WATERMARK = "transactionWatermark"
