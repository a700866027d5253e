SPECIALS = set("!@#$%^&*()-_=+[]{};:'\",.<>/?\\|`~")
