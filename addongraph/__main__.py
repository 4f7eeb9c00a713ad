from addongraph.cli import main

main()
