from zkif.cli import main

main()
