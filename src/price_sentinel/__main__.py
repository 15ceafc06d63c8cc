from price_sentinel.cli import main

main()
