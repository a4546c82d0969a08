from next_maker.cli import main

main()
